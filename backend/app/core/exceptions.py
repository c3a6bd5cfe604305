class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None, headers: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

class ScheduleClashError(AppError):
    """Raised when a proposed exam conflicts with exams already on the timetable."""
    def __init__(self, message: str, clashes: list[dict]):
        super().__init__(message, status_code=409, details={"clashes": clashes})
        self.clashes = clashes

class ScheduleValidationError(AppError):
    """Raised when an exam's effective schedule is not valid, e.g. it ends before it starts."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class TimetableClashError(AppError):
    """Raised when an exam or course would overlap something already in a student's timetable."""
    def __init__(self, messages: list[str], clashes: list[dict]):
        super().__init__(
            "This selection clashes with your timetable: " + " ".join(messages),
            status_code=409,
            details={"messages": messages, "clashes": clashes},
        )

class DuplicateSelectionError(AppError):
    """Raised when a student saves an exam or class code that is already in their timetable."""
    def __init__(self):
        super().__init__("Class already added for this user.", status_code=409)

class RateLimitExceededError(AppError):
    """Raised when a caller has used up its request allowance for a scope."""
    def __init__(self, scope: str, retry_after: int):
        super().__init__(
            f"Too many requests for {scope}. Try again in {retry_after} second(s).",
            status_code=429,
            details={"scope": scope, "retry_after_seconds": retry_after},
            headers={"Retry-After": str(retry_after)},
        )
