"""Domain layer: settlement records, canonical ordering, numeric tolerance and errors."""

from ringcheck.domain.errors import (
    EventRetrievalFailure,
    ScenarioError,
    SerializationMismatch,
    StructuralMismatch,
    ToleranceViolation,
    TransferSetMismatch,
    VerificationError,
)
from ringcheck.domain.models import (
    OrderDescriptor,
    SettlementBatch,
    SignAlgorithm,
    TransferRecord,
)

__all__ = [
    "EventRetrievalFailure",
    "OrderDescriptor",
    "ScenarioError",
    "SerializationMismatch",
    "SettlementBatch",
    "SignAlgorithm",
    "StructuralMismatch",
    "ToleranceViolation",
    "TransferRecord",
    "TransferSetMismatch",
    "VerificationError",
]
