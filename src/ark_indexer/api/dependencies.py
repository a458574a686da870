"""FastAPI dependencies for request validation and shared services."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from ark_indexer.core.config import Settings
from ark_indexer.services.indexing.transfer_processor import TransferProcessor
from ark_indexer.services.webhook_signature import validate_signature


def get_settings(request: Request) -> Settings:
    """Settings loaded by the application lifespan."""
    return request.app.state.settings


async def validate_webhook_signature(
    request: Request,
    x_ark_signature: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> bytes:
    """Validate the webhook signature before processing the request.

    Returns:
        Raw request body bytes (for further processing by the endpoint)

    Raises:
        HTTPException: 401 Unauthorized if signature is missing or invalid
    """
    if not x_ark_signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Ark-Signature header"
        )

    raw_body = await request.body()

    if not validate_signature(raw_body, x_ark_signature, settings.webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature"
        )

    return raw_body


def get_transfer_processor(request: Request) -> TransferProcessor:
    """TransferProcessor built by the application lifespan."""
    return request.app.state.transfer_processor
