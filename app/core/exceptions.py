"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


# Scheduling domain errors


class InvalidProfessional(BadRequestException):
    """Appointment references a professional that does not exist."""

    def __init__(self, message: str = "Invalid professional"):
        super().__init__(message)


class PastDateNotAllowed(BadRequestException):
    """Appointment date is not strictly in the future."""

    def __init__(self, message: str = "Appointment date must be in the future"):
        super().__init__(message)


class SlotConflict(ConflictException):
    """Professional already has an appointment at that exact time."""

    def __init__(self, message: str = "This time slot is already booked for the professional"):
        super().__init__(message)


class AppointmentNotFound(NotFoundException):
    """Appointment does not exist."""

    def __init__(self, message: str = "Appointment not found"):
        super().__init__(message)


class MissingRelation(AppException):
    """A required related record (patient, professional, user) is absent."""

    def __init__(self, relation: str):
        self.relation = relation
        super().__init__(f"Missing related record: {relation}", status_code=500)
