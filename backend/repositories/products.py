from typing import Optional

from odoo_client import OdooClient

PRODUCT_MODEL = "product.product"


def find_product_by_name(client: OdooClient, name: str) -> Optional[int]:
    rows = client.search_read(PRODUCT_MODEL, [["name", "=", name]], fields=["id"], limit=1)
    return rows[0]["id"] if rows else None


def create_product(
    client: OdooClient,
    name: str,
    price: float,
    product_type: str = "consu",
) -> int:
    return client.create(
        PRODUCT_MODEL,
        {"name": name, "list_price": price, "type": product_type},
    )


def find_or_create_product(
    client: OdooClient,
    name: str,
    price: float,
    product_type: str = "consu",
) -> int:
    existing = find_product_by_name(client, name)
    if existing:
        return existing
    return create_product(client, name, price, product_type)
