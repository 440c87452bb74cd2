from typing import Any, Dict, Optional

from odoo_client import OdooClient
from schemas import Address, OrderSubmission

PARTNER_MODEL = "res.partner"


def _address_values(address: Address, country_id: Optional[int]) -> Dict[str, Any]:
    return {
        "street": address.street or "",
        "street2": address.street2 or "",
        "city": address.city or "",
        "zip": address.zip or "",
        "country_id": country_id or False,
    }


def find_partner_by_email(client: OdooClient, email: str) -> Optional[int]:
    ids = client.search(PARTNER_MODEL, [["email", "=", email]], limit=1)
    return ids[0] if ids else None


def create_partner(client: OdooClient, values: Dict[str, Any]) -> int:
    return client.create(PARTNER_MODEL, values)


def find_or_create_partner(
    client: OdooClient,
    submission: OrderSubmission,
    country_id: Optional[int] = None,
) -> int:
    existing = find_partner_by_email(client, submission.email)
    if existing:
        return existing
    values = {
        "name": submission.customer_name,
        "email": submission.email,
        "phone": submission.phone,
        **_address_values(submission.billing, country_id),
    }
    return create_partner(client, values)


def create_delivery_address(
    client: OdooClient,
    parent_id: int,
    name: str,
    address: Address,
    country_id: Optional[int] = None,
) -> int:
    values = {
        "parent_id": parent_id,
        "type": "delivery",
        "name": name,
        **_address_values(address, country_id),
    }
    return create_partner(client, values)
