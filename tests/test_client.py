from __future__ import annotations

import pytest
from fakes import HOME, PEER_ADDRESS, PEER_AP, FakeRadio, FakeTransport

from pydoorlink._transport import SendResult
from pydoorlink.client import DoorLinkClient
from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import DoorLinkError
from pydoorlink.models.door import DoorState
from pydoorlink.models.provisioning import ProvisioningStage
from pydoorlink.storage import MemoryKeyValueStore


@pytest.mark.asyncio
async def test_pair_then_toggle_then_cold_start(
    config: DoorLinkConfig, radio: FakeRadio, transport: FakeTransport, backend: MemoryKeyValueStore
) -> None:
    transport.responses["setup"] = SendResult(ok=True, body=f"Credentials received {PEER_ADDRESS}", status=200)
    transport.reachable.add(PEER_ADDRESS)

    async with DoorLinkClient(config, radio=radio, storage=backend, transport=transport) as client:
        assert not (await client.start()).connected

        setup = client.provisioning()
        await setup.begin()
        await setup.join_peer_network(PEER_AP, "peer-pass")
        await setup.send_credentials(HOME, "secret")

        assert setup.stage is ProvisioningStage.COMPLETE
        assert client.status().connected
        assert not client.supervisor.health_checks_running
        assert await client.toggle_door() is DoorState.OPEN

    async with DoorLinkClient(config, radio=radio, storage=backend, transport=transport) as client:
        status = await client.start()

        assert status.connected
        assert client.door_state is DoorState.OPEN
        assert client.supervisor.health_checks_running


@pytest.mark.asyncio
async def test_client_requires_context_manager(config: DoorLinkConfig, radio: FakeRadio) -> None:
    client = DoorLinkClient(config, radio=radio, storage=MemoryKeyValueStore())

    with pytest.raises(DoorLinkError):
        client.status()


@pytest.mark.asyncio
async def test_client_owns_its_http_session(config: DoorLinkConfig, radio: FakeRadio) -> None:
    async with DoorLinkClient(config, radio=radio, storage=MemoryKeyValueStore()) as client:
        assert not (await client.start()).connected
        assert client.door_state is DoorState.CLOSED
