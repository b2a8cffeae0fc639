from fastapi import status


class StockAppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred"):
        super().__init__(message)
        self.message = message


class NotFoundError(StockAppError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidRequestError(StockAppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(StockAppError):
    """A delete is blocked by dependent rows."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(StockAppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, product_name: str, available: int, required: int):
        super().__init__(
            f"Insufficient stock for product {product_name}. "
            f"Available: {available}, Required: {required}"
        )
        self.product_name = product_name
        self.available = available
        self.required = required


class InternalError(StockAppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
