"""
Error Types

Two fault families, both fatal to the caller:
- MapConfigurationError: the map cannot support the parking model
- ParkingInvariantError: a caller broke the reserve/park/leave protocol

Expected absence (no free spot, a lane without parking) is never an error.
"""


class MapConfigurationError(RuntimeError):
    """Map data is malformed or inconsistent. Construction aborts."""


class ParkingInvariantError(RuntimeError):
    """A parking ledger precondition was violated."""
