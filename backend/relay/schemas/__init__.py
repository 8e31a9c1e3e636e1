from relay.schemas.secret import (
    Expiration,
    MessageResponse,
    SecretCreate,
    SecretCreateResponse,
    SecretRetrieveResponse,
)

__all__ = [
    "Expiration",
    "MessageResponse",
    "SecretCreate",
    "SecretCreateResponse",
    "SecretRetrieveResponse",
]
