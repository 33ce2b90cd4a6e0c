"""State layer.

Single owner of the transient connectivity status.  Every trigger (cold
start, resume, health check, provisioning handoff, door command) reports
into the store, which emits a transition whenever ``connected`` flips.
"""
