import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from auth import verify_webhook_token
from errors import PayloadError, UpstreamError
from schemas import OrderSubmission, PreviewResponse, WebhookResponse
from services import order_service

logger = logging.getLogger("form-orders")

router = APIRouter(
    prefix="/webhook",
    tags=["webhook"],
    dependencies=[Depends(verify_webhook_token)],
)


async def _read_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
        else:
            form = await request.form()
            body = {key: value for key, value in form.items() if isinstance(value, str)}
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed request body"
        ) from exc
    if not isinstance(body, dict) or not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Empty request body"
        )
    return body


def _parse(body: Dict[str, Any]) -> OrderSubmission:
    try:
        return order_service.build_submission(body)
    except PayloadError as exc:
        logger.warning("Rejected form submission: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("", response_model=WebhookResponse)
async def receive_submission(request: Request) -> WebhookResponse:
    submission = _parse(await _read_body(request))
    try:
        result = await order_service.process_submission(submission)
    except UpstreamError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Upstream failure during {exc.step}: {exc}",
        ) from exc
    return WebhookResponse(
        sale_order_id=result.sale_order_id,
        sale_order_name=result.sale_order_name,
        partner_id=result.partner_id,
        invoice_ids=result.invoice_ids,
        invoice_emailed=result.invoice_emailed,
        fulfillment_status=result.fulfillment_status,
        products=result.lines,
        order_lines=len(result.lines),
    )


@router.post("/preview", response_model=PreviewResponse)
async def preview_submission(request: Request) -> PreviewResponse:
    submission = _parse(await _read_body(request))
    return PreviewResponse(submission=submission, order_lines=len(submission.lines))
