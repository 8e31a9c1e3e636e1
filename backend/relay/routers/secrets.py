from fastapi import APIRouter, Depends, Request

from relay.config import Settings, settings
from relay.errors import BadRequestError
from relay.middleware.rate_limit import limiter
from relay.schemas.secret import MessageResponse, SecretCreateResponse, SecretRetrieveResponse
from relay.services.secret_service import (
    TokenGenerator,
    create_secret,
    parse_secret_request,
    redeem_secret,
)
from relay.services.storage_service import SecretStore

router = APIRouter()

OTHER_METHODS_ON_CREATE = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]
OTHER_METHODS_ON_RETRIEVE = ["POST", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_store(request: Request) -> SecretStore:
    """Dependency returning the store the app was built with."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_generator(request: Request) -> TokenGenerator:
    return request.app.state.token_generator


@router.post(
    "/secret",
    response_model=SecretCreateResponse,
    responses={400: {"model": MessageResponse}, 500: {"model": MessageResponse}},
)
@limiter.limit(settings.rate_limit_creates)
async def create_new_secret(
    request: Request,
    store: SecretStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
    token_generator: TokenGenerator = Depends(get_token_generator),
):
    """
    Store a secret for one-time retrieval.

    The body is parsed by hand so malformed JSON answers 400 rather than 422.
    """
    secret_data = parse_secret_request(await request.body())

    secret_id = await create_secret(
        store,
        secret_data,
        max_length=app_settings.max_secret_length,
        token_generator=token_generator,
    )

    return SecretCreateResponse(key=secret_id)


@router.api_route("/secret", methods=OTHER_METHODS_ON_CREATE, include_in_schema=False)
async def reject_create_method():
    raise BadRequestError()


@router.get(
    "/secret/{secret_id:path}",
    response_model=SecretRetrieveResponse,
    responses={
        400: {"model": MessageResponse},
        404: {"model": MessageResponse},
        500: {"model": MessageResponse},
    },
)
@limiter.limit(settings.rate_limit_retrieves)
async def retrieve_secret_endpoint(
    request: Request,
    secret_id: str,
    store: SecretStore = Depends(get_store),
):
    """
    Retrieve a secret.

    This is a ONE-TIME operation: the secret is deleted as it is returned.
    """
    payload = await redeem_secret(store, secret_id)
    return SecretRetrieveResponse(secret=payload)


@router.api_route(
    "/secret/{secret_id:path}", methods=OTHER_METHODS_ON_RETRIEVE, include_in_schema=False
)
async def reject_retrieve_method(secret_id: str):
    raise BadRequestError()
