from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockapi.api.v1 import (
    auth,
    category,
    dashboard,
    invoice,
    product,
    purchase,
    purchase_detail,
    sale,
    sale_detail,
    supplier,
    user,
)
from stockapi.common.error_handlers import register_error_handlers
from stockapi.core.config import settings

app = FastAPI(title="Stock API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(user.router, prefix="/api/v1/users", tags=["users"])
app.include_router(
    category.router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(
    supplier.router, prefix="/api/v1/suppliers", tags=["suppliers"])
app.include_router(
    product.router, prefix="/api/v1/products", tags=["products"])
app.include_router(
    purchase.router, prefix="/api/v1/purchases", tags=["purchases"])
app.include_router(
    purchase_detail.router, prefix="/api/v1/purchase-details", tags=["purchase details"])
app.include_router(sale.router, prefix="/api/v1/sales", tags=["sales"])
app.include_router(
    sale_detail.router, prefix="/api/v1/sale-details", tags=["sale details"])
app.include_router(
    invoice.router, prefix="/api/v1/invoices", tags=["invoices"])
app.include_router(
    dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Stock APIs!"}


@app.get("/health")
def health():
    return {"status": "ok"}
