import logging
from typing import Any, Dict, Optional

import httpx

from config import settings
from schemas import OrderSubmission

logger = logging.getLogger("form-orders")


def build_fulfillment_payload(
    submission: OrderSubmission,
    sale_order_id: int,
    sale_order_name: Optional[str],
) -> Dict[str, Any]:
    return {
        "customer": {
            "name": submission.customer_name,
            "email": submission.email,
            "phone": submission.phone,
            "address": (submission.shipping or submission.billing).model_dump(),
        },
        "order": [line.model_dump() for line in submission.lines],
        "sale_order": {"id": sale_order_id, "name": sale_order_name},
    }


async def notify_fulfillment(
    submission: OrderSubmission,
    sale_order_id: int,
    sale_order_name: Optional[str] = None,
) -> str:
    if not settings.fulfillment_api_url:
        return "skipped"
    headers = {"Content-Type": "application/json"}
    if settings.fulfillment_api_key:
        headers["Authorization"] = f"Bearer {settings.fulfillment_api_key}"
    payload = build_fulfillment_payload(submission, sale_order_id, sale_order_name)
    try:
        async with httpx.AsyncClient(timeout=settings.fulfillment_timeout_seconds) as client:
            response = await client.post(
                settings.fulfillment_api_url, json=payload, headers=headers
            )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Fulfillment notification for order %s failed: %s", sale_order_id, exc)
        return "failed"
    logger.info("Fulfillment notified for sale order %s", sale_order_id)
    return "sent"
