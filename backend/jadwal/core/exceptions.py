class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler encounters a logical error or invalid state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class HardConflictError(AppError):
    """Raised when a placement would book the same teacher twice in one period."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class MissingTeacherError(AppError):
    """Raised when no teacher is assigned to the requested subject for a class."""
    def __init__(self, subject: str, class_key: str):
        super().__init__(
            f"No teacher is assigned to {subject} for class {class_key}",
            status_code=422,
            details={"subject": subject, "class_key": class_key},
        )

class PublicationPreconditionError(AppError):
    """Raised when publishing before any day has been generated."""
    def __init__(self, message: str = "At least one day must be generated before publishing"):
        super().__init__(message, status_code=409)

class StoreFailureError(AppError):
    """Raised when the persistence store fails to read or write a path."""
    def __init__(self, operation: str, path: str):
        super().__init__(
            f"Store {operation} failed for {path}",
            status_code=502,
            details={"operation": operation, "path": path},
        )
