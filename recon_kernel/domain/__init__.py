"""Pure domain layer of the reconciliation kernel: value rules, clock, DTOs."""
