import re
from datetime import date
from decimal import Decimal

import pytest

from stockapi.services.invoice_service import calculate_amounts


@pytest.fixture
def customer_id(client, admin_headers):
    response = client.post("/api/v1/invoices/customers", json={
        "name": "Jordan Lee",
        "email": "jordan@example.com",
    }, headers=admin_headers)
    assert response.status_code == 201
    return response.json()["id"]


def test_calculate_amounts():
    discount, tax, total = calculate_amounts(Decimal("200.00"), Decimal("10"), Decimal("5"))

    assert discount == Decimal("20.00")
    assert tax == Decimal("9.00")
    assert total == Decimal("189.00")


def test_calculate_amounts_keeps_supplied_values():
    discount, tax, total = calculate_amounts(
        Decimal("100.00"), Decimal("10"), Decimal("10"), discount_amount=Decimal("1.00")
    )

    assert discount == Decimal("1.00")
    assert tax == Decimal("9.90")
    assert total == Decimal("108.90")


def test_create_invoice_fills_derived_fields(client, admin_headers, customer_id):
    response = client.post("/api/v1/invoices", json={
        "customer_id": customer_id,
        "invoice_date": "2026-03-01",
        "sub_total": "200.00",
        "discount_percentage": "10",
        "tax_percentage": "5",
    }, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert re.fullmatch(r"INV-20260301-[A-Z0-9]{8}", body["invoice_number"])
    assert body["due_date"] == "2026-03-31"
    assert Decimal(body["discount_amount"]) == Decimal("20.00")
    assert Decimal(body["tax_amount"]) == Decimal("9.00")
    assert Decimal(body["total_amount"]) == Decimal("189.00")
    assert body["status"] == "Pending"


def test_create_invoice_defaults_to_today(client, admin_headers, customer_id):
    body = client.post("/api/v1/invoices", json={"customer_id": customer_id}, headers=admin_headers).json()

    assert body["invoice_date"] == date.today().isoformat()
    assert body["invoice_number"].startswith(f"INV-{date.today():%Y%m%d}-")


def test_create_invoice_unknown_customer(client, admin_headers):
    response = client.post("/api/v1/invoices", json={"customer_id": 999}, headers=admin_headers)
    assert response.status_code == 404


def test_update_and_summary(client, admin_headers, customer_id):
    first = client.post("/api/v1/invoices", json={
        "customer_id": customer_id,
        "sub_total": "100.00",
    }, headers=admin_headers).json()
    client.post("/api/v1/invoices", json={
        "customer_id": customer_id,
        "sub_total": "50.00",
    }, headers=admin_headers)

    response = client.put(f"/api/v1/invoices/{first['id']}", json={
        "id": first["id"],
        "customer_id": customer_id,
        "invoice_date": first["invoice_date"],
        "sub_total": "100.00",
        "status": "Paid",
    }, headers=admin_headers)
    assert response.status_code == 204

    summary = client.get("/api/v1/invoices/summary", headers=admin_headers).json()
    assert summary["total_invoices"] == 2
    assert summary["paid_invoices"] == 1
    assert summary["pending_invoices"] == 1
    assert summary["overdue_invoices"] == 0
    assert Decimal(summary["paid_amount"]) == Decimal("100.00")
    assert Decimal(summary["pending_amount"]) == Decimal("50.00")
    assert Decimal(summary["total_amount"]) == Decimal("150.00")

    paid = client.get("/api/v1/invoices?status=Paid", headers=admin_headers).json()
    assert [i["id"] for i in paid] == [first["id"]]


def test_delete_invoice(client, admin_headers, staff_headers, customer_id):
    invoice = client.post("/api/v1/invoices", json={"customer_id": customer_id}, headers=admin_headers).json()

    assert client.delete(f"/api/v1/invoices/{invoice['id']}", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/v1/invoices/{invoice['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/v1/invoices/{invoice['id']}", headers=admin_headers).status_code == 404


def test_sale_with_invoice_cannot_be_deleted(client, admin_headers, customer_id, sale):
    client.post("/api/v1/invoices", json={"customer_id": customer_id, "sale_id": sale.id}, headers=admin_headers)

    response = client.delete(f"/api/v1/sales/{sale.id}", headers=admin_headers)
    assert response.status_code == 400


def test_list_customers(client, admin_headers, customer_id):
    customers = client.get("/api/v1/invoices/customers", headers=admin_headers).json()
    assert [c["id"] for c in customers] == [customer_id]
