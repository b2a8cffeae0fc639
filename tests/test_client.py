from decimal import Decimal

import pytest

from stockapi.client import ApiClientError, StockApiClient


@pytest.fixture
def api(client, admin_user):
    stock_client = StockApiClient(http_client=client)
    stock_client.login("admin", "secret123")
    return stock_client


def test_login_keeps_token_on_instance(client, admin_user):
    first = StockApiClient(http_client=client)
    second = StockApiClient(http_client=client)

    session = first.login("admin", "secret123")

    assert session.is_authenticated
    assert session.role == "Admin"
    assert not second.session.is_authenticated


def test_bad_login_raises(client, admin_user):
    with pytest.raises(ApiClientError) as exc_info:
        StockApiClient(http_client=client).login("admin", "nope-nope")
    assert exc_info.value.status_code == 401


def test_purchase_and_sale_flow(api, product, purchase, sale):
    api.add_purchase_detail(purchase.id, product.id, 5, Decimal("4.00"))
    assert api.get_product(product.id)["stock_level"] == 15

    detail = api.add_sale_detail(sale.id, product.id, 3, Decimal("6.50"))
    assert api.get_product(product.id)["stock_level"] == 12

    with pytest.raises(ApiClientError) as exc_info:
        api.update_sale_detail(detail["id"], {
            "sale_id": sale.id,
            "product_id": product.id,
            "quantity": 20,
            "unit_price": "6.50",
        })
    assert exc_info.value.status_code == 400
    assert "Insufficient stock" in exc_info.value.message
    assert api.get_product(product.id)["stock_level"] == 12

    api.delete_sale_detail(detail["id"])
    assert api.get_product(product.id)["stock_level"] == 15


def test_categories_and_dashboard(api):
    api.create_category("Paint")

    page = api.list_categories()
    assert page["TotalRecords"] == 1

    summary = api.dashboard_summary()
    assert summary["total_categories"] == 1


def test_logout_drops_token(api):
    api.logout()

    with pytest.raises(ApiClientError) as exc_info:
        api.list_products()
    assert exc_info.value.status_code in (401, 403)
