"""Service layer — business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Package or group not present in the snapshot."""


class ValidationError(ServiceError):
    """Invalid input, e.g. an unreadable snapshot payload."""


class PathViolationError(ServiceError):
    """A mutation targeted a file outside the active library."""
