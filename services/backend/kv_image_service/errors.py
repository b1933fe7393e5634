"""Error types raised by the key-value store and mapped to HTTP statuses."""


class KVError(Exception):
    """Base exception for key-value store errors.

    Every subclass carries the HTTP status code it is reported with and a
    short human-readable message used as the response detail.
    """

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class KeyNotFoundError(KVError):
    """The requested key has never been written."""

    status_code = 404
    default_message = "Key not found"


class InvalidImageError(KVError):
    """Content declared as an image could not be decoded."""

    status_code = 400
    default_message = "Invalid image"


class UnsupportedOperationError(KVError):
    """An image operation was requested on a value that is not an image."""

    status_code = 403
    default_message = "Operation not supported for this type of value"

    @classmethod
    def for_operation(cls, operation: str) -> "UnsupportedOperationError":
        return cls(f"Not possible to {operation} this type of value")


class StoreUnavailableError(KVError):
    """The store lock could not be acquired."""

    status_code = 500
    default_message = "Error writing to DB"


class ImageEncodingError(KVError):
    """A transformed image could not be serialized for the response."""

    status_code = 500
    default_message = "Failed to encode image"
