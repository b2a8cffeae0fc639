from .api_client import ApiClientError, ClientSession, StockApiClient

__all__ = ["ApiClientError", "ClientSession", "StockApiClient"]
