"""Domain error codes for the scheduling module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ID = "INVALID_ID"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
    PARTIAL_CASCADE_FAILURE = "PARTIAL_CASCADE_FAILURE"
    SMS_DELIVERY_FAILED = "SMS_DELIVERY_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for malformed or logically inconsistent input."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(code=code, message=message)
        self.field = field


class InvalidIdError(ValidationError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, entity: str) -> None:
        super().__init__(
            message=f"Invalid {entity} ID format",
            field=f"{entity}_id",
            code=ErrorCode.INVALID_ID,
        )
        self.entity = entity


class NotFoundError(DomainError):
    """Raised when a referenced event, slot, user or assignment does not exist."""

    def __init__(self, entity: str, entity_id: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{entity.capitalize()} not found",
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    """Raised when a uniqueness or business rule blocks the operation."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.CONFLICT) -> None:
        super().__init__(code=code, message=message)


class AlreadyAssignedError(ConflictError):
    """Raised when a volunteer already holds the slot."""

    def __init__(self, slot_id: str, user_id: str) -> None:
        super().__init__(
            message="User is already assigned to this slot",
            code=ErrorCode.ALREADY_ASSIGNED,
        )
        self.slot_id = slot_id
        self.user_id = user_id


class PartialCascadeFailure(DomainError):
    """Raised when a cascade updated the parent but some children failed.

    The parent and the children listed in ``succeeded`` stay committed.
    """

    def __init__(
        self,
        event_id: str,
        succeeded: list[str],
        failed: dict[str, str],
    ) -> None:
        super().__init__(
            code=ErrorCode.PARTIAL_CASCADE_FAILURE,
            message=f"{len(failed)} of {len(succeeded) + len(failed)} instances failed to update",
        )
        self.event_id = event_id
        self.succeeded = list(succeeded)
        self.failed = dict(failed)


class SmsDeliveryError(DomainError):
    """Raised when an on-demand SMS could not be delivered."""

    def __init__(self, message: str = "Failed to send SMS") -> None:
        super().__init__(code=ErrorCode.SMS_DELIVERY_FAILED, message=message)


class StorageError(DomainError):
    """Raised by a store when the backing database rejects a write."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(code=ErrorCode.STORAGE_ERROR, message=message)
