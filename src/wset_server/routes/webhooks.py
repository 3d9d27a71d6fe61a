"""Storefront order webhook.

The storefront posts ``{"topic": ..., "data": {<order>}}`` for order
events.  Only order create/update events carrying a WSET course are
processed; everything else is acknowledged and ignored so the
storefront does not retry it.
"""

import base64
import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from wset_workflow.constants import ORDER_TOPICS, WSET_PRODUCT_MARKERS
from wset_workflow.models.order import SquarespaceOrder
from wset_workflow.processor import OrderProcessor

from wset_server.dependencies import get_db, get_processor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SIGNATURE_HEADER = "X-Squarespace-Signature"


def compute_signature(secret: str, body: bytes) -> str:
    """Base64-encoded HMAC-SHA256 of the raw request body."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(secret: str | None, body: bytes, signature: str | None) -> bool:
    """Check the webhook signature header.

    Without a configured secret only the header's presence is required.
    """
    if not signature:
        logger.warning("Missing %s header", SIGNATURE_HEADER)
        return False
    if not secret:
        return True
    return hmac.compare_digest(compute_signature(secret, body), signature)


def is_wset_order(order_data: dict) -> bool:
    """Whether any line item looks like a WSET course."""
    for item in order_data.get("lineItems") or []:
        name = (item.get("productName") or "").lower()
        if any(marker in name for marker in WSET_PRODUCT_MARKERS):
            return True
    return False


@router.post("/squarespace")
async def receive_order_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    processor: OrderProcessor = Depends(get_processor),
):
    """Process an order event into the WSET workflow.

    Returns 401 on a bad signature, 400 on an unreadable payload and 500
    when the order could not be processed.
    """
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    topic = payload.get("topic")
    order_data = payload.get("data") or {}
    logger.info(
        "Order webhook received: topic=%s order_id=%s",
        topic, order_data.get("id") if isinstance(order_data, dict) else None,
    )

    secret = request.app.state.settings.webhook_secret
    if not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if topic not in ORDER_TOPICS:
        logger.info("Ignoring webhook topic: %s", topic)
        return {"message": "Webhook received but not processed"}

    if not isinstance(order_data, dict) or not order_data.get("id"):
        logger.error("Invalid order data received")
        raise HTTPException(status_code=400, detail="Invalid order data")

    if not is_wset_order(order_data):
        logger.info("Order %s is not a WSET course, skipping", order_data.get("orderNumber"))
        return {"message": "Non-WSET order ignored"}

    try:
        order = SquarespaceOrder.model_validate(order_data)
    except ValidationError as exc:
        logger.error("Order %s failed validation: %s", order_data.get("id"), exc)
        raise HTTPException(status_code=400, detail="Invalid order data")

    result = await processor.process_order(db, order)
    if not result.success:
        logger.error("Failed to process WSET order %s: %s", order.id, result.error)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": result.error},
        )

    return {
        "success": True,
        "message": "WSET order processed successfully",
        "workflow_state_id": str(result.workflow_state_id),
        "candidate_id": str(result.candidate_id) if result.candidate_id else None,
        "warnings": result.warnings,
    }


@router.get("/squarespace")
async def webhook_status() -> dict:
    """Endpoint check for webhook registration."""
    return {
        "message": "WSET order webhook endpoint",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": "active",
        "supported_events": sorted(ORDER_TOPICS),
    }
