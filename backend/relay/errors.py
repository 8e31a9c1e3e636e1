"""
Error taxonomy for the secret relay.

Every error that reaches a caller is a RelayError subclass carrying the HTTP
status and a caller-safe message. Store failures keep their original cause
chained for server-side logs only.
"""


class RelayError(Exception):
    status_code: int = 500
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class BadRequestError(RelayError):
    """Client input violates a validation rule."""

    status_code = 400
    message = "Bad Request, see https://github.com/jhaals/yopass for more info"


class NotFoundError(RelayError):
    """Well-formed id that is not (or no longer) in the store."""

    status_code = 404
    message = "Secret not found"


class StorageError(RelayError):
    """The backing store failed. The message never includes store details."""

    status_code = 500
    message = "Storage failure"


class StoreConfigError(ValueError):
    pass
