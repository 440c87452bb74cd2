from typing import List, Optional

from odoo_client import OdooClient
from repositories.sale_orders import SALE_ORDER_MODEL, read_sale_order

INVOICE_MODEL = "account.move"
INVOICE_WIZARD_MODEL = "sale.advance.payment.inv"
MAIL_TEMPLATE_MODEL = "mail.template"
DEFAULT_TEMPLATE_XMLID = ("account", "email_template_edi_invoice")


def create_invoices(client: OdooClient, sale_order_id: int) -> List[int]:
    context = {
        "active_model": SALE_ORDER_MODEL,
        "active_ids": [sale_order_id],
        "active_id": sale_order_id,
    }
    wizard_id = client.create(
        INVOICE_WIZARD_MODEL,
        {"advance_payment_method": "delivered"},
        context=context,
    )
    client.call(INVOICE_WIZARD_MODEL, "create_invoices", [wizard_id], context=context)
    return list(read_sale_order(client, sale_order_id, ["invoice_ids"]).get("invoice_ids") or [])


def post_invoice(client: OdooClient, invoice_id: int) -> None:
    client.call(INVOICE_MODEL, "action_post", [invoice_id])


def find_invoice_template_id(client: OdooClient) -> Optional[int]:
    module, name = DEFAULT_TEMPLATE_XMLID
    rows = client.search_read(
        "ir.model.data",
        [["module", "=", module], ["name", "=", name], ["model", "=", MAIL_TEMPLATE_MODEL]],
        fields=["res_id"],
        limit=1,
    )
    return rows[0]["res_id"] if rows else None


def send_invoice_email(
    client: OdooClient,
    invoice_id: int,
    template_id: Optional[int] = None,
) -> bool:
    template_id = template_id or find_invoice_template_id(client)
    if not template_id:
        return False
    client.call(MAIL_TEMPLATE_MODEL, "send_mail", template_id, invoice_id, force_send=True)
    return True
