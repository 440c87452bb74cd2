import dataclasses
import json

import pytest
from fastapi.testclient import TestClient

import auth
from api import health as health_module
from config import settings
from main import app
from services import order_service


@pytest.fixture
def client(monkeypatch, fake_odoo):
    monkeypatch.setattr(order_service, "get_odoo_client", lambda: fake_odoo)
    monkeypatch.setattr(health_module, "get_odoo_client", lambda: fake_odoo)
    return TestClient(app)


def test_webhook_accepts_jotform_form_post(client, fake_odoo, raw_submission):
    resp = client.post("/webhook", data={"rawRequest": json.dumps(raw_submission)})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Order received and processed"
    assert body["sale_order_id"] == fake_odoo.created("sale.order")[0]["id"]
    assert body["order_lines"] == 3
    assert body["products"][0]["display_name"] == "T-Shirt (Color: Green, T-Shirt Size: XXL)"


def test_webhook_accepts_json_body(client, raw_submission):
    resp = client.post("/webhook", json={"rawRequest": raw_submission})

    assert resp.status_code == 200
    assert resp.json()["order_lines"] == 3


def test_webhook_rejects_malformed_raw_request(client, fake_odoo):
    resp = client.post("/webhook", data={"rawRequest": "{oops"})

    assert resp.status_code == 400
    assert fake_odoo.calls == []


def test_webhook_rejects_invalid_json_body(client):
    resp = client.post(
        "/webhook", content=b"{oops", headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 400


def test_webhook_rejects_empty_body(client):
    assert client.post("/webhook").status_code == 400


def test_webhook_rejects_order_without_products(client, raw_submission):
    raw_submission.pop("q43_myProducts")

    resp = client.post("/webhook", data={"rawRequest": json.dumps(raw_submission)})

    assert resp.status_code == 400


def test_webhook_maps_upstream_failure_to_502(client, fake_odoo, raw_submission):
    fake_odoo.fail_on = ("res.partner", "*")

    resp = client.post("/webhook", data={"rawRequest": json.dumps(raw_submission)})

    assert resp.status_code == 502
    assert "customer" in resp.json()["detail"]


def test_webhook_token_is_enforced_when_configured(monkeypatch, client, raw_submission):
    monkeypatch.setattr(auth, "settings", dataclasses.replace(settings, webhook_token="s3cret"))
    payload = {"rawRequest": json.dumps(raw_submission)}

    assert client.post("/webhook", data=payload).status_code == 401
    assert client.post("/webhook?token=wrong", data=payload).status_code == 401
    assert client.post("/webhook?token=s3cret", data=payload).status_code == 200
    resp = client.post("/webhook", data=payload, headers={"X-Webhook-Token": "s3cret"})
    assert resp.status_code == 200


def test_preview_does_not_touch_odoo(client, fake_odoo, raw_submission):
    resp = client.post("/webhook/preview", data={"rawRequest": json.dumps(raw_submission)})

    assert resp.status_code == 200
    body = resp.json()
    assert body["order_lines"] == 3
    assert body["submission"]["customer_name"] == "Ada Lovelace"
    assert fake_odoo.calls == []


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert "timestamp" in body


def test_odoo_health(client, fake_odoo):
    resp = client.get("/health/odoo")
    assert resp.status_code == 200
    assert resp.json()["server_version"] == "17.0"

    fake_odoo.fail_on = ("common", "version")
    assert client.get("/health/odoo").status_code == 502


def test_webhook_rejects_non_ascii_token(monkeypatch, client, raw_submission):
    monkeypatch.setattr(auth, "settings", dataclasses.replace(settings, webhook_token="s3cret"))
    payload = {"rawRequest": json.dumps(raw_submission)}

    assert client.post("/webhook?token=%C3%A9", data=payload).status_code == 401
    resp = client.post("/webhook", data=payload, headers={"X-Webhook-Token": "s3crét".encode("utf-8")})
    assert resp.status_code == 401


@pytest.mark.parametrize("quantity", ["1e400", "3000000000"])
def test_preview_rejects_out_of_range_quantity(client, fake_odoo, raw_submission, quantity):
    raw_submission["q43_myProducts"]["products"][0]["quantity"] = quantity

    resp = client.post("/webhook/preview", data={"rawRequest": json.dumps(raw_submission)})

    assert resp.status_code == 400
    assert fake_odoo.calls == []
