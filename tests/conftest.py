import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "backend"))

os.environ.setdefault("ODOO_URL", "http://odoo.test")
os.environ.setdefault("ODOO_DB", "test")
os.environ.setdefault("ODOO_USERNAME", "bot@example.com")
os.environ.setdefault("ODOO_PASSWORD", "secret")
for _name in (
    "WEBHOOK_TOKEN",
    "FULFILLMENT_API_URL",
    "FULFILLMENT_API_KEY",
    "CREATE_INVOICE",
    "SEND_INVOICE_EMAIL",
    "INVOICE_EMAIL_TEMPLATE_ID",
    "PRODUCT_CATALOG",
):
    os.environ[_name] = ""

import pytest

from errors import OdooError
from repositories import countries

FIXTURES = Path(__file__).resolve().parent / "fixtures"


class FakeOdooClient:
    """In-memory stand-in for OdooClient covering the calls the app makes."""

    def __init__(self) -> None:
        self.records: Dict[str, List[Dict[str, Any]]] = {
            "res.country": [
                {"id": 77, "code": "GB", "name": "United Kingdom"},
                {"id": 233, "code": "US", "name": "United States"},
            ],
            "ir.model.data": [
                {
                    "id": 1,
                    "module": "account",
                    "name": "email_template_edi_invoice",
                    "model": "mail.template",
                    "res_id": 12,
                }
            ],
        }
        self.calls: List[tuple] = []
        self.fail_on: Optional[tuple] = None
        self._next_id = 1000
        self.created_ids: set = set()

    def _check(self, model: str, method: str) -> None:
        self.calls.append((model, method))
        if self.fail_on in {(model, method), (model, "*")}:
            raise OdooError(f"{model}.{method} failed: boom", model=model, method=method)

    def _matches(self, record: Dict[str, Any], domain: List[Any]) -> bool:
        for field, op, value in domain:
            current = record.get(field)
            if op == "=" and current != value:
                return False
            if op == "ilike" and str(value).lower() not in str(current or "").lower():
                return False
        return True

    def authenticate(self) -> int:
        return 2

    def version(self) -> Dict[str, Any]:
        self._check("common", "version")
        return {"server_version": "17.0", "protocol_version": 1}

    def search(self, model: str, domain: List[Any], **kwargs: Any) -> List[int]:
        self._check(model, "search")
        ids = [r["id"] for r in self.records.get(model, []) if self._matches(r, domain)]
        limit = kwargs.get("limit")
        return ids[:limit] if limit else ids

    def search_read(self, model: str, domain: List[Any], **kwargs: Any) -> List[Dict[str, Any]]:
        self._check(model, "search_read")
        rows = [dict(r) for r in self.records.get(model, []) if self._matches(r, domain)]
        limit = kwargs.get("limit")
        return rows[:limit] if limit else rows

    def read(self, model: str, ids: List[int], fields: List[str]) -> List[Dict[str, Any]]:
        self._check(model, "read")
        rows = [r for r in self.records.get(model, []) if r["id"] in ids]
        return [{"id": r["id"], **{f: r.get(f) for f in fields}} for r in rows]

    def create(self, model: str, values: Dict[str, Any], **kwargs: Any) -> int:
        self._check(model, "create")
        self._next_id += 1
        self.created_ids.add(self._next_id)
        record = {"id": self._next_id, **values}
        if model == "sale.order":
            record.update(name=f"S{self._next_id:05d}", state="draft", invoice_ids=[])
        if kwargs.get("context"):
            record["_context"] = kwargs["context"]
        self.records.setdefault(model, []).append(record)
        return self._next_id

    def call(self, model: str, method: str, *args: Any, **kwargs: Any) -> Any:
        self._check(model, method)
        if model == "sale.order" and method == "action_confirm":
            for record in self.records.get(model, []):
                if record["id"] in args[0]:
                    record["state"] = "sale"
            return True
        if model == "sale.advance.payment.inv" and method == "create_invoices":
            for order_id in kwargs["context"]["active_ids"]:
                invoice_id = self.create("account.move", {"state": "draft", "sale_order": order_id})
                for order in self.records["sale.order"]:
                    if order["id"] == order_id:
                        order["invoice_ids"].append(invoice_id)
            return True
        if model == "account.move" and method == "action_post":
            for record in self.records.get(model, []):
                if record["id"] in args[0]:
                    record["state"] = "posted"
            return True
        if model == "mail.template" and method == "send_mail":
            self.records.setdefault("mail.mail", []).append(
                {"id": len(self.records.get("mail.mail", [])) + 1, "template": args[0], "res_id": args[1]}
            )
            return 1
        raise AssertionError(f"Unexpected call {model}.{method}")

    def created(self, model: str) -> List[Dict[str, Any]]:
        return [r for r in self.records.get(model, []) if r["id"] in self.created_ids]


@pytest.fixture(autouse=True)
def _clear_country_cache():
    countries.clear_cache()
    yield
    countries.clear_cache()


@pytest.fixture
def fake_odoo() -> FakeOdooClient:
    return FakeOdooClient()


@pytest.fixture
def raw_submission() -> Dict[str, Any]:
    return json.loads((FIXTURES / "jotform_submission.json").read_text(encoding="utf-8"))
