class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SlotValidationError(AppError):
    """Raised when a grid mutation is rejected; the grid is left unchanged."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class GenerationError(AppError):
    """Raised when the generation collaborator is unreachable or answers with an unusable schedule."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)

class PersistenceError(AppError):
    """Raised when a timetable save or load fails against the database."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class SaveInProgressError(AppError):
    """Raised when a second save is attempted for a class while one is still running."""
    def __init__(self, class_name: str):
        super().__init__(
            f"A save is already in progress for class {class_name}",
            status_code=409,
            details={"class_name": class_name},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
