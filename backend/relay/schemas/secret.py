import re
from enum import IntEnum

from pydantic import BaseModel, Field

# Canonical lowercase UUID text form; anything else is rejected before the store is touched
SECRET_ID_PATTERN = re.compile(r"^[0-9a-f]{8}-([0-9a-f]{4}-){3}[0-9a-f]{12}$")


class Expiration(IntEnum):
    """Lifetimes a secret may be stored for, in seconds."""

    ONE_HOUR = 3600
    ONE_DAY = 86400
    ONE_WEEK = 604800

    @classmethod
    def is_valid(cls, seconds: int) -> bool:
        return seconds in {member.value for member in cls}


def is_valid_secret_id(value: str) -> bool:
    return SECRET_ID_PATTERN.fullmatch(value) is not None


class SecretCreate(BaseModel):
    secret: str = Field(..., strict=True)
    expiration: int = Field(..., strict=True, description="Lifetime in seconds")


class SecretCreateResponse(BaseModel):
    key: str
    message: str = "secret stored"


class SecretRetrieveResponse(BaseModel):
    secret: str
    message: str = "OK"


class MessageResponse(BaseModel):
    message: str
