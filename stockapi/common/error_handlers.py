from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stockapi.common.exceptions import StockAppError
from stockapi.logger_config import logger


def register_error_handlers(app: FastAPI):
    @app.exception_handler(StockAppError)
    async def handle_stock_app_error(request: Request, e: StockAppError):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {e.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {e.message}")

        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "message": e.message,
                "status_code": e.status_code,
            },
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception("Unhandled exception occurred")

        # Handle all other exceptions (coding, DB errors, etc.)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal Server Error",
                "details": str(e),
                "status_code": 500,
            },
        )
