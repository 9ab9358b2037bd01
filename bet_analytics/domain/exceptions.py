"""Domain-specific exceptions"""

from typing import FrozenSet


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidSettlementEventError(DomainException):
    """Settlement payload is malformed or inconsistent"""

    pass


class ProjectionStoreError(DomainException):
    """Projection store could not read or write a row"""

    pass


class ConcurrentUpdateError(ProjectionStoreError):
    """Projection row changed between read and save"""

    def __init__(self, projection: str, expected_version: int):
        super().__init__(f"{projection} was modified concurrently (expected version {expected_version})")
        self.projection = projection
        self.expected_version = expected_version


class ProjectionUpdateError(DomainException):
    """
    One projection sub-update failed while aggregating a settlement.

    Sub-updates listed in ``completed`` were already saved and are not rolled
    back. Hand them back to ``AggregationEngine.apply`` to resume without
    double counting.
    """

    def __init__(self, projection: str, completed: FrozenSet[str], cause: Exception):
        super().__init__(f"Failed to update {projection}: {cause}")
        self.projection = projection
        self.completed = completed
        self.cause = cause
