import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

DEFAULT_PRODUCT_CATALOG: Dict[str, Dict[str, Any]] = {
    "special_1001": {"name": "T-Shirt", "price": 1.00},
    "special_1002": {"name": "Sweatshirt", "price": 5.00},
    "special_1003": {"name": "Shoes", "price": 10.00},
}


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_bool(name: str, fallback: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None or raw_value.strip() == "":
        return fallback
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_optional_int(name: str) -> int | None:
    raw_value = os.getenv(name)
    if not raw_value:
        return None
    return int(raw_value)


def _get_catalog(name: str) -> Dict[str, Dict[str, Any]]:
    raw_value = os.getenv(name)
    if not raw_value:
        return dict(DEFAULT_PRODUCT_CATALOG)
    try:
        catalog = json.loads(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a JSON object") from exc
    if not isinstance(catalog, dict):
        raise RuntimeError(f"{name} must be a JSON object")
    return catalog


@dataclass(frozen=True)
class Settings:
    odoo_url: str = _require_env("ODOO_URL").rstrip("/")
    odoo_db: str = _require_env("ODOO_DB")
    odoo_username: str = _require_env("ODOO_USERNAME")
    odoo_password: str = _require_env("ODOO_PASSWORD")
    odoo_timeout_seconds: float = float(os.getenv("ODOO_TIMEOUT_SECONDS", "30"))
    webhook_token: str | None = os.getenv("WEBHOOK_TOKEN") or None
    create_invoice: bool = _get_bool("CREATE_INVOICE")
    send_invoice_email: bool = _get_bool("SEND_INVOICE_EMAIL")
    invoice_email_template_id: int | None = _get_optional_int(
        "INVOICE_EMAIL_TEMPLATE_ID"
    )
    product_type: str = os.getenv("PRODUCT_TYPE", "consu")
    product_catalog: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: _get_catalog("PRODUCT_CATALOG")
    )
    fulfillment_api_url: str | None = os.getenv("FULFILLMENT_API_URL") or None
    fulfillment_api_key: str | None = os.getenv("FULFILLMENT_API_KEY") or None
    fulfillment_timeout_seconds: float = float(
        os.getenv("FULFILLMENT_TIMEOUT_SECONDS", "10")
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    port: int = int(os.getenv("PORT", "3000"))


settings = Settings()
