"""Pure domain types for the ledger kernel: clock and read-side DTOs."""
