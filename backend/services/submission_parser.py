"""
Normalization of Jotform-style submissions into order lines.

Two product payload shapes are seen in practice:

* a ``products`` array with ``productName``/``unitPrice``/``quantity`` entries,
  accompanied by ``special_<id>`` objects holding the raw option answers;
* only the dynamically keyed ``special_<id>`` objects (``item_0`` is the
  quantity, later items are option answers), sometimes preceded by numbered
  ``{"id": "<id>"}`` entries giving the selection order.

Both are reduced to a list of :class:`schemas.ProductLine`.
"""

import json
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from errors import PayloadError
from schemas import Address, OrderSubmission, ProductLine

logger = logging.getLogger("form-orders")

FIELD_KEY_PATTERN = re.compile(r"^q(\d+)_(.+?)(\d*)$")
ITEM_KEY_PATTERN = re.compile(r"^item_(\d+)$")
SPECIAL_PREFIX = "special_"
PLACEHOLDER_EMAIL_DOMAIN = "noemail.com"
# Odoo receives quantities as XML-RPC <int>, a signed 32-bit value.
MAX_QUANTITY = 2**31 - 1
SKIPPED_OPTION_PREFIXES = ("amount:", "quantity:")

NAME_FIELDS = ("q2_fullName2", "fullName", "name", "customerName")
EMAIL_FIELDS = ("q3_email3", "email", "emailAddress")
PHONE_FIELDS = ("q5_contactNumber", "contactNumber", "phoneNumber", "phone")
BILLING_FIELDS = ("q4_billingAddress", "billingAddress", "address")
SHIPPING_FIELDS = ("shippingAddress", "deliveryAddress")
NOTES_FIELDS = ("notes", "orderNotes", "specialInstructions", "comments")
PRODUCTS_FIELDS = ("q43_myProducts", "myProducts", "products")

ADDRESS_KEYS = {
    "street": "addr_line1",
    "street2": "addr_line2",
    "city": "city",
    "state": "state",
    "zip": "postal",
    "country": "country",
}


def _parse_float(value: Any) -> Optional[float]:
    try:
        if value is None or value == "":
            return None
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: Any) -> Optional[int]:
    try:
        if value is None or value == "":
            return None
        return int(float(value))
    except (TypeError, ValueError):
        return None
    except OverflowError as exc:
        raise PayloadError(f"Number out of range: {value!r}") from exc


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def load_raw_request(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the decoded submission from a webhook body.

    Jotform posts the answers as a JSON string in the ``rawRequest`` form
    field; a body without that field is taken to be the submission itself.
    """
    if not isinstance(data, Mapping):
        raise PayloadError("Webhook body must be an object")
    raw = data.get("rawRequest", data)
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise PayloadError("rawRequest is not valid JSON") from exc
    if not isinstance(raw, Mapping):
        raise PayloadError("rawRequest must be a JSON object")
    return dict(raw)


def find_field(raw: Mapping[str, Any], *names: str) -> Any:
    """Look up a form question by exact key or by base name.

    ``q12_email12`` has the base name ``email``. An exact key match wins;
    otherwise base names are tried in the order given, and the lowest
    question number wins among matches of the same base name.
    """
    for name in names:
        if name in raw:
            return raw[name]
    by_base: Dict[str, List[Tuple[int, str]]] = {}
    for key in raw:
        match = FIELD_KEY_PATTERN.match(str(key))
        if match:
            by_base.setdefault(match.group(2).lower(), []).append((int(match.group(1)), key))
    for name in names:
        candidates = by_base.get(name.lower())
        if candidates:
            return raw[min(candidates)[1]]
    return None


def parse_full_name(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        parts = [
            _clean_text(value.get(part))
            for part in ("prefix", "first", "middle", "last", "suffix")
        ]
        return " ".join(part for part in parts if part) or None
    return _clean_text(value)


def parse_phone(value: Any) -> str:
    if isinstance(value, Mapping):
        full = _clean_text(value.get("full"))
        if full:
            return full
        parts = [_clean_text(value.get("area")), _clean_text(value.get("phone"))]
        return " ".join(part for part in parts if part)
    return _clean_text(value) or ""


def parse_address(value: Any) -> Address:
    if not isinstance(value, Mapping):
        return Address()
    return Address(
        **{field: _clean_text(value.get(key)) for field, key in ADDRESS_KEYS.items()}
    )


def placeholder_email(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"{int(moment.timestamp() * 1000)}@{PLACEHOLDER_EMAIL_DOMAIN}"


def format_display_name(name: str, options: List[str]) -> str:
    if not options:
        return name
    return f"{name} ({', '.join(options)})"


def _item_answers(details: Mapping[str, Any]) -> Dict[int, Any]:
    answers = {}
    for key, value in details.items():
        match = ITEM_KEY_PATTERN.match(str(key))
        if match:
            answers[int(match.group(1))] = value
    return answers


def _option_answers(answers: Dict[int, Any]) -> List[Any]:
    return [answers[index] for index in sorted(answers) if index > 0]


def _label_options(product_name: str, answers: List[Any]) -> List[str]:
    values = [text for text in (_clean_text(answer) for answer in answers) if text]
    if len(values) == 1:
        labels = ["Size"]
    elif len(values) == 2:
        labels = ["Color", f"{product_name} Size"]
    else:
        labels = [f"Option {index + 1}" for index in range(len(values))]
    return [f"{label}: {value}" for label, value in zip(labels, values)]


def _numbered_ids(products_field: Mapping[str, Any]) -> List[str]:
    numbered = []
    for key, value in products_field.items():
        if str(key).isdigit() and isinstance(value, Mapping) and value.get("id"):
            numbered.append((int(key), str(value["id"])))
    return [product_id for _, product_id in sorted(numbered)]


def _catalog_entry(catalog: Mapping[str, Any], key: Optional[str]) -> Dict[str, Any]:
    if not key:
        return {}
    entry = catalog.get(key)
    if entry is None and key.startswith(SPECIAL_PREFIX):
        entry = catalog.get(key[len(SPECIAL_PREFIX):])
    return dict(entry) if isinstance(entry, Mapping) else {}


def _catalog_key_for_name(catalog: Mapping[str, Any], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, entry in catalog.items():
        if isinstance(entry, Mapping) and (_clean_text(entry.get("name")) or "").lower() == wanted:
            return key if key.startswith(SPECIAL_PREFIX) else f"{SPECIAL_PREFIX}{key}"
    return None


def _check_quantity(key: str, quantity: int) -> int:
    if quantity > MAX_QUANTITY:
        raise PayloadError(f"Quantity {quantity} for {key} is too large")
    return quantity


def _options_from_product(product: Mapping[str, Any]) -> Optional[List[str]]:
    raw_options = product.get("productOptions")
    if not isinstance(raw_options, list):
        return None
    options = []
    for option in raw_options:
        text = _clean_text(option)
        if not text or text.lower().startswith(SKIPPED_OPTION_PREFIXES):
            continue
        options.append(text)
    return options


def _lines_from_product_list(
    products_field: Mapping[str, Any],
    product_list: List[Any],
    catalog: Mapping[str, Any],
) -> List[ProductLine]:
    numbered = _numbered_ids(products_field)
    lines: List[ProductLine] = []
    for index, product in enumerate(product_list):
        if not isinstance(product, Mapping):
            logger.warning("Skipping product #%s: entry is not an object", index)
            continue
        product_name = _clean_text(product.get("productName"))
        if index < len(numbered):
            key = f"{SPECIAL_PREFIX}{numbered[index]}"
        else:
            key = None
            if product_name:
                key = _catalog_key_for_name(catalog, product_name)
            key = key or f"{SPECIAL_PREFIX}{1001 + index}"
        details = products_field.get(key)
        details = details if isinstance(details, Mapping) else {}
        answers = _item_answers(details)
        entry = _catalog_entry(catalog, key)
        catalog_name = _clean_text(entry.get("name"))
        if product_name and (catalog_name or "").lower() != product_name.lower():
            entry = _catalog_entry(catalog, _catalog_key_for_name(catalog, product_name))

        name = product_name or catalog_name
        if not name:
            logger.warning("Skipping product #%s (%s): no product name", index, key)
            continue

        quantity = _parse_int(product.get("quantity"))
        if quantity is None:
            quantity = _parse_int(answers.get(0))
        if quantity is None:
            quantity = 1
        quantity = _check_quantity(key, quantity)

        price = _parse_float(product.get("unitPrice"))
        if price is None:
            price = _parse_float(entry.get("price")) or 0.0

        options = _options_from_product(product)
        if options is None:
            options = _label_options(name, _option_answers(answers))

        lines.append(
            ProductLine(
                key=key,
                name=name,
                display_name=format_display_name(name, options),
                unit_price=price,
                quantity=quantity,
                currency=_clean_text(product.get("currency")),
                options=options,
            )
        )
    return lines


def _lines_from_special_keys(
    products_field: Mapping[str, Any],
    catalog: Mapping[str, Any],
) -> List[ProductLine]:
    keys: List[str] = []
    for product_id in _numbered_ids(products_field):
        keys.append(f"{SPECIAL_PREFIX}{product_id}")
    for key in products_field:
        if str(key).startswith(SPECIAL_PREFIX) and key not in keys:
            keys.append(key)

    lines: List[ProductLine] = []
    for key in keys:
        details = products_field.get(key)
        if not isinstance(details, Mapping):
            logger.warning("No special details found for %s. Skipping this product.", key)
            continue
        entry = _catalog_entry(catalog, key)
        name = _clean_text(entry.get("name"))
        if not name:
            logger.warning("Product %s is not in the catalog. Skipping this product.", key)
            continue
        answers = _item_answers(details)
        quantity = _parse_int(answers.get(0))
        if quantity is None:
            logger.warning("Product %s has no quantity. Skipping this product.", key)
            continue
        quantity = _check_quantity(key, quantity)
        options = _label_options(name, _option_answers(answers))
        lines.append(
            ProductLine(
                key=key,
                name=name,
                display_name=format_display_name(name, options),
                unit_price=_parse_float(entry.get("price")) or 0.0,
                quantity=quantity,
                options=options,
            )
        )
    return lines


def extract_order_lines(
    products_field: Any, catalog: Mapping[str, Any]
) -> List[ProductLine]:
    if isinstance(products_field, str):
        try:
            products_field = json.loads(products_field)
        except ValueError as exc:
            raise PayloadError("The products field is not valid JSON") from exc
    if not isinstance(products_field, Mapping):
        raise PayloadError("The products field is missing or not an object")

    product_list = products_field.get("products")
    if isinstance(product_list, list) and product_list:
        lines = _lines_from_product_list(products_field, product_list, catalog)
    else:
        lines = _lines_from_special_keys(products_field, catalog)
    return [line for line in lines if line.quantity > 0]


def parse_submission(
    raw: Mapping[str, Any],
    catalog: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> OrderSubmission:
    customer_name = parse_full_name(find_field(raw, *NAME_FIELDS))
    if not customer_name:
        raise PayloadError("Customer name is missing")

    lines = extract_order_lines(find_field(raw, *PRODUCTS_FIELDS), catalog)
    if not lines:
        raise PayloadError("No valid products found in the order")

    shipping = parse_address(find_field(raw, *SHIPPING_FIELDS))
    return OrderSubmission(
        customer_name=customer_name,
        email=_clean_text(find_field(raw, *EMAIL_FIELDS)) or placeholder_email(now),
        phone=parse_phone(find_field(raw, *PHONE_FIELDS)),
        billing=parse_address(find_field(raw, *BILLING_FIELDS)),
        shipping=None if shipping.is_empty() else shipping,
        notes=_clean_text(find_field(raw, *NOTES_FIELDS)),
        lines=lines,
    )
