"""
Issuance and one-time redemption of secrets.

The returned id is the only credential needed to read a secret: whoever holds
it can redeem it once. Ids are never written to logs.
"""

import uuid
from collections.abc import Callable

import structlog
from pydantic import ValidationError

from relay.errors import BadRequestError, NotFoundError, StorageError
from relay.schemas.secret import Expiration, SecretCreate, is_valid_secret_id
from relay.services.storage_service import SecretStore

logger = structlog.get_logger()

TokenGenerator = Callable[[], str]

DEFAULT_MAX_SECRET_LENGTH = 10_000


def generate_token() -> str:
    """Random (version 4) UUID in canonical text form."""
    return str(uuid.uuid4())


def parse_secret_request(body: bytes) -> SecretCreate:
    try:
        return SecretCreate.model_validate_json(body)
    except ValidationError:
        raise BadRequestError("Unable to parse json")


def validate_secret_request(
    data: SecretCreate, max_length: int = DEFAULT_MAX_SECRET_LENGTH
) -> None:
    """Check expiration and size policy. Raises BadRequestError, no side effects."""
    if not Expiration.is_valid(data.expiration):
        raise BadRequestError("Invalid expiration specified")

    # Measured in bytes, which is what the store holds
    if len(data.secret.encode("utf-8")) > max_length:
        raise BadRequestError("Message is too long")


async def create_secret(
    store: SecretStore,
    data: SecretCreate,
    max_length: int = DEFAULT_MAX_SECRET_LENGTH,
    token_generator: TokenGenerator = generate_token,
) -> str:
    """
    Validate and store a secret.

    Returns the newly minted id. Raises BadRequestError on invalid input and
    StorageError if the store write fails, in which case no id is handed out.
    """
    validate_secret_request(data, max_length)

    secret_id = token_generator()
    try:
        await store.put(secret_id, data.secret.encode("utf-8"), int(data.expiration))
    except StorageError as e:
        logger.error("secret_store_failed", error=repr(e.__cause__ or e), exc_info=True)
        raise StorageError("Failed to store secret in database")

    logger.info(
        "secret_stored",
        expiration=data.expiration,
        size=len(data.secret.encode("utf-8")),
    )
    return secret_id


async def redeem_secret(store: SecretStore, secret_id: str) -> str:
    """
    Read a secret once and remove it.

    The delete doubles as the claim: if another request removed the key
    between our read and our delete, that request owns the payload and this
    one gets NotFoundError. A failing delete is logged and the payload is
    still returned; it then stays readable until its TTL runs out.
    """
    if not is_valid_secret_id(secret_id):
        raise BadRequestError("Bad URL")

    try:
        value = await store.get(secret_id)
    except StorageError as e:
        logger.error("secret_read_failed", error=repr(e.__cause__ or e), exc_info=True)
        raise StorageError("Unable to receive secret from database")

    if value is None:
        logger.info("secret_not_found")
        raise NotFoundError("Secret not found")

    try:
        claimed = await store.delete(secret_id)
    except StorageError as e:
        logger.error("secret_delete_failed", error=repr(e.__cause__ or e), exc_info=True)
    else:
        if not claimed:
            logger.info("secret_claim_lost")
            raise NotFoundError("Secret not found")

    logger.info("secret_redeemed", size=len(value))
    return value.decode("utf-8")
