"""Domain errors raised by the services and translated to HTTP responses."""


class DomainError(Exception):
    """Base domain error carrying the HTTP status and title it maps to."""

    status_code = 400
    title = "Bad request"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    status_code = 404
    title = "Resource not found"


class ResourceAlreadyExistsError(DomainError):
    status_code = 409
    title = "Resource already exists"


class ResourceInUseError(DomainError):
    status_code = 409
    title = "Resource in use"


class InvalidRequestError(DomainError):
    status_code = 400
    title = "Invalid request"


class OverlappingShowtimesError(DomainError):
    status_code = 409
    title = "Overlapping showtimes"


class SeatNotAvailableError(DomainError):
    status_code = 409
    title = "Seat not available"


class SeatLockTimeoutError(SeatNotAvailableError):
    """Another transaction kept the requested seats locked past the wait bound."""


class IllegalStatusError(DomainError):
    status_code = 422
    title = "Illegal status"
