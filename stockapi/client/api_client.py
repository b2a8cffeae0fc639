"""
Thin synchronous client for the Stock API.
The bearer token lives on the client instance, one per session.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from stockapi.logger_config import logger

API_PREFIX = "/api/v1"


class ApiClientError(Exception):
    """Raised for any non-2xx response."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


@dataclass
class ClientSession:
    token: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def clear(self):
        self.token = None
        self.username = None
        self.role = None


class StockApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = http_client is None
        self.session = ClientSession()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._owns_client:
            self.client.close()

    # ==================== Core ====================

    def _headers(self) -> Dict[str, str]:
        if not self.session.is_authenticated:
            return {}
        return {"Authorization": f"Bearer {self.session.token}"}

    def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        response = self.client.request(
            method,
            f"{API_PREFIX}{endpoint}",
            json=json,
            params=params,
            headers=self._headers(),
        )

        if response.is_error:
            message = response.reason_phrase
            try:
                body = response.json()
                message = body.get("message") or body.get("detail") or message
            except ValueError:
                pass
            logger.warning(f"{method} {endpoint} failed: {response.status_code} {message}")
            raise ApiClientError(response.status_code, str(message))

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ==================== Auth ====================

    def login(self, username: str, password: str) -> ClientSession:
        data = self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.session.token = data["token"]
        self.session.username = data["username"]
        self.session.role = data["role"]
        return self.session

    def logout(self):
        self.session.clear()

    # ==================== Products ====================

    def list_products(self) -> List[dict]:
        return self._request("GET", "/products")

    def get_product(self, product_id: int) -> dict:
        return self._request("GET", f"/products/{product_id}")

    def create_product(self, payload: dict) -> dict:
        return self._request("POST", "/products", json=payload)

    def update_product(self, product_id: int, payload: dict):
        self._request("PUT", f"/products/{product_id}", json={**payload, "id": product_id})

    def delete_product(self, product_id: int):
        self._request("DELETE", f"/products/{product_id}")

    def low_stock_products(self, threshold: Optional[int] = None) -> List[dict]:
        return self._request("GET", "/products/low-stock", params={"threshold": threshold})

    # ==================== Categories ====================

    def list_categories(self, page_number: int = 1, page_size: int = 5) -> dict:
        return self._request(
            "GET", "/categories", params={"pageNumber": page_number, "pageSize": page_size}
        )

    def create_category(self, name: str, user_id: Optional[int] = None) -> dict:
        return self._request("POST", "/categories", json={"name": name, "user_id": user_id})

    # ==================== Purchases ====================

    def list_purchases(self) -> List[dict]:
        return self._request("GET", "/purchases")

    def get_purchase(self, purchase_id: int) -> dict:
        return self._request("GET", f"/purchases/{purchase_id}")

    def create_purchase(self, payload: dict) -> dict:
        return self._request("POST", "/purchases", json=payload)

    def delete_purchase(self, purchase_id: int):
        self._request("DELETE", f"/purchases/{purchase_id}")

    def add_purchase_detail(self, purchase_id: int, product_id: int, quantity: int, unit_cost) -> dict:
        return self._request(
            "POST",
            "/purchase-details",
            json={
                "purchase_id": purchase_id,
                "product_id": product_id,
                "quantity": quantity,
                "unit_cost": str(unit_cost),
            },
        )

    def update_purchase_detail(self, detail_id: int, payload: dict):
        self._request("PUT", f"/purchase-details/{detail_id}", json={**payload, "id": detail_id})

    def delete_purchase_detail(self, detail_id: int):
        self._request("DELETE", f"/purchase-details/{detail_id}")

    # ==================== Sales ====================

    def list_sales(self) -> List[dict]:
        return self._request("GET", "/sales")

    def get_sale(self, sale_id: int) -> dict:
        return self._request("GET", f"/sales/{sale_id}")

    def create_sale(self, payload: dict) -> dict:
        return self._request("POST", "/sales", json=payload)

    def delete_sale(self, sale_id: int):
        self._request("DELETE", f"/sales/{sale_id}")

    def add_sale_detail(self, sale_id: int, product_id: int, quantity: int, unit_price) -> dict:
        return self._request(
            "POST",
            "/sale-details",
            json={
                "sale_id": sale_id,
                "product_id": product_id,
                "quantity": quantity,
                "unit_price": str(unit_price),
            },
        )

    def update_sale_detail(self, detail_id: int, payload: dict):
        self._request("PUT", f"/sale-details/{detail_id}", json={**payload, "id": detail_id})

    def delete_sale_detail(self, detail_id: int):
        self._request("DELETE", f"/sale-details/{detail_id}")

    # ==================== Dashboard ====================

    def dashboard_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        return self._request(
            "GET",
            "/dashboard/summary",
            params={
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        )
