from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to act on a resource they do not own."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class PreconditionFailedError(UserError):
    """Raised when a membership invariant or business rule would be violated.

    Examples: the caller is not a member of the chat, the event is full,
    the user already joined.
    """


class ServiceError(ABC, Exception):
    """Base class for server-side failures that the client may retry."""


class AllocationExhaustedError(ServiceError):
    """Raised when a counter bucket has no sequence numbers left."""


class StorageUnavailableError(ServiceError):
    """Raised when the document store cannot be reached."""

    def __init__(self, message: str = "Storage is unavailable") -> None:
        super().__init__(message)


class FanoutIncompleteError(ServiceError):
    """Raised when a fan-out write reached only some participants.

    The authoritative record is already updated; the lagging participants
    can be repaired by re-running the projection.
    """

    def __init__(self, group_id: str, succeeded: list[str], failed: list[str]) -> None:
        super().__init__(f"Update of '{group_id}' reached {len(succeeded)} of {len(succeeded) + len(failed)} participants")
        self.group_id = group_id
        self.succeeded = succeeded
        self.failed = failed
