"""Webhook endpoint receiving single Transfer events.

Upstream consumers (block extraction + contract classification) post one
classified event per request.
"""

import json

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ValidationError

from ark_indexer.api.dependencies import get_transfer_processor, validate_webhook_signature
from ark_indexer.models.collection import ContractType
from ark_indexer.services.exceptions import BlockFetchError, EventDecodeError
from ark_indexer.services.indexing.transfer_processor import TransferProcessor

logger = structlog.get_logger()
router = APIRouter()


class TransferWebhookPayload(BaseModel):
    """Body of a transfer webhook."""

    event: dict
    contract_type: ContractType


@router.post("/transfers")
async def receive_transfer(
    response: Response,
    raw_body: bytes = Depends(validate_webhook_signature),
    processor: TransferProcessor = Depends(get_transfer_processor),
):
    """Process one Transfer event.

    HTTP Status Codes:
        200: Event processed (inspect ``needs_retry`` for failed writes)
        202: Event processed but some writes failed; re-deliver later
        400: Malformed payload or event
        503: Block unavailable; re-deliver later
    """
    try:
        payload = TransferWebhookPayload.model_validate(json.loads(raw_body))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("webhook.invalid_payload", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid transfer payload: {e}",
        )

    try:
        result = await processor.process(payload.event, payload.contract_type)
    except EventDecodeError as e:
        logger.warning("webhook.decode_error", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BlockFetchError as e:
        logger.error("webhook.block_unavailable", error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if result.needs_retry:
        response.status_code = status.HTTP_202_ACCEPTED

    return {"status": "processed", "result": result.to_dict()}
