from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Referenced student, term or transaction does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class GatewayError(ServiceError):
    """Payment gateway answered with a non-2xx status, a non-JSON body, or not at all."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class StoreError(ServiceError):
    """Document store write failed. Nothing was applied."""

    def __init__(self, message: str = "Failed to save changes", status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message, status_code)


class PreconditionFailed(StoreError):
    """A guarded path no longer holds the value the caller read."""

    def __init__(self, message: str = "Record was modified concurrently, please retry") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)
