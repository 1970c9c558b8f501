class BookingError(Exception):
    """Base class for failures reported back to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class SlotConflictError(BookingError):
    status_code = 409


class StoreError(BookingError):
    """The data store could not be read or written."""

    status_code = 503
