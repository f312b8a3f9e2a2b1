"""Room expense ledger, split state machine and settlement analytics."""
