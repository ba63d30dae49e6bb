"""Error taxonomy for grid, storage and identity operations.

Every error carries a stable ``code`` and a short ``user_message`` that is
safe to show in the page. The exception message itself may contain
provider detail and is only written to the logs.
"""


class GridError(Exception):
    """Base class for expected application errors."""

    code = "unknown_error"
    default_user_message = "Something went wrong. Check the Debug tab for details."
    retryable = False

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class AuthRequired(GridError):
    """Raised when a mutation is attempted without an active session."""

    code = "auth_required"
    default_user_message = (
        "You must be signed in to change the grid. "
        "Please go to the Account tab to sign in."
    )


class StorageUnavailable(GridError):
    """Raised when the bucket is missing, uncreatable or unreachable."""

    code = "storage_unavailable"
    default_user_message = "Failed to reach image storage. Please try again."
    retryable = True


class ImageDecodeError(GridError):
    """Raised when uploaded bytes cannot be decoded as an image."""

    code = "image_decode_error"
    default_user_message = "Please select an image file."


class UnknownError(GridError):
    """Catch-all for unexpected failures."""
