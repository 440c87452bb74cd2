from typing import Any, Dict, List, Optional

from odoo_client import OdooClient

SALE_ORDER_MODEL = "sale.order"


def order_line_command(product_id: int, name: str, quantity: int, price: float) -> List[Any]:
    return [
        0,
        0,
        {
            "product_id": product_id,
            "name": name,
            "product_uom_qty": quantity,
            "price_unit": price,
        },
    ]


def create_sale_order(
    client: OdooClient,
    partner_id: int,
    order_lines: List[List[Any]],
    *,
    shipping_partner_id: Optional[int] = None,
    note: Optional[str] = None,
) -> int:
    values: Dict[str, Any] = {"partner_id": partner_id, "order_line": order_lines}
    if shipping_partner_id:
        values["partner_shipping_id"] = shipping_partner_id
    if note:
        values["note"] = note
    return client.create(SALE_ORDER_MODEL, values)


def confirm_sale_order(client: OdooClient, sale_order_id: int) -> Any:
    return client.call(SALE_ORDER_MODEL, "action_confirm", [sale_order_id])


def read_sale_order(client: OdooClient, sale_order_id: int, fields: List[str]) -> Dict[str, Any]:
    rows = client.read(SALE_ORDER_MODEL, [sale_order_id], fields)
    return rows[0] if rows else {}


def read_sale_order_name(client: OdooClient, sale_order_id: int) -> Optional[str]:
    return read_sale_order(client, sale_order_id, ["name"]).get("name") or None
