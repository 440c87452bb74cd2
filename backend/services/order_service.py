import asyncio
import logging
from typing import Any, List, Mapping, Optional

from config import settings
from errors import OdooError, UpstreamError
from odoo_client import OdooClient, get_odoo_client
from repositories import countries, invoices, partners, products, sale_orders
from schemas import OrderResult, OrderSubmission
from services.fulfillment_service import notify_fulfillment
from services.submission_parser import load_raw_request, parse_submission

logger = logging.getLogger("form-orders")


def build_submission(data: Mapping[str, Any]) -> OrderSubmission:
    raw = load_raw_request(data)
    return parse_submission(raw, settings.product_catalog)


async def _step(step: str, func, *args, **kwargs):
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except OdooError as exc:
        logger.error("Order step '%s' failed: %s", step, exc)
        raise UpstreamError(str(exc), step=step) from exc


def _same_address(submission: OrderSubmission) -> bool:
    return submission.shipping is None or submission.shipping == submission.billing


async def _create_invoices(client: OdooClient, sale_order_id: int) -> tuple[List[int], bool]:
    invoice_ids = await _step("create_invoice", invoices.create_invoices, client, sale_order_id)
    emailed = False
    for invoice_id in invoice_ids:
        await _step("post_invoice", invoices.post_invoice, client, invoice_id)
        if settings.send_invoice_email:
            sent = await _step(
                "send_invoice",
                invoices.send_invoice_email,
                client,
                invoice_id,
                settings.invoice_email_template_id,
            )
            if not sent:
                logger.warning("No invoice email template found; invoice %s not emailed", invoice_id)
            emailed = emailed or sent
    logger.info("Created invoices %s for sale order %s", invoice_ids, sale_order_id)
    return invoice_ids, emailed


async def process_submission(
    submission: OrderSubmission,
    client: Optional[OdooClient] = None,
) -> OrderResult:
    client = client or get_odoo_client()

    country_id = await _step(
        "country", countries.resolve_country_id, client, submission.billing.country
    )
    partner_id = await _step(
        "customer", partners.find_or_create_partner, client, submission, country_id
    )
    logger.info("Using customer %s for %s", partner_id, submission.email)

    shipping_partner_id = None
    if not _same_address(submission):
        shipping_country_id = await _step(
            "country", countries.resolve_country_id, client, submission.shipping.country
        )
        shipping_partner_id = await _step(
            "shipping_address",
            partners.create_delivery_address,
            client,
            partner_id,
            submission.customer_name,
            submission.shipping,
            shipping_country_id,
        )

    order_lines = []
    for line in submission.lines:
        product_id = await _step(
            "product",
            products.find_or_create_product,
            client,
            line.display_name,
            line.unit_price,
            settings.product_type,
        )
        order_lines.append(
            sale_orders.order_line_command(
                product_id, line.display_name, line.quantity, line.unit_price
            )
        )
    logger.info("Prepared %s Odoo order lines", len(order_lines))

    sale_order_id = await _step(
        "sale_order",
        sale_orders.create_sale_order,
        client,
        partner_id,
        order_lines,
        shipping_partner_id=shipping_partner_id,
        note=submission.notes,
    )
    logger.info("Created sale order with ID: %s", sale_order_id)

    await _step("confirm", sale_orders.confirm_sale_order, client, sale_order_id)
    logger.info("Sale order %s confirmed", sale_order_id)

    sale_order_name = await _step(
        "sale_order", sale_orders.read_sale_order_name, client, sale_order_id
    )

    invoice_ids: List[int] = []
    invoice_emailed = False
    if settings.create_invoice:
        invoice_ids, invoice_emailed = await _create_invoices(client, sale_order_id)

    fulfillment_status = await notify_fulfillment(submission, sale_order_id, sale_order_name)

    return OrderResult(
        sale_order_id=sale_order_id,
        sale_order_name=sale_order_name,
        partner_id=partner_id,
        shipping_partner_id=shipping_partner_id,
        invoice_ids=invoice_ids,
        invoice_emailed=invoice_emailed,
        fulfillment_status=fulfillment_status,
        lines=submission.lines,
    )

