from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockapi.core.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_level >= 0", name="ck_products_stock_level_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    unit = Column(String(50), nullable=True)
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)
    selling_price = Column(Numeric(15, 2), nullable=False, default=0)
    stock_level = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    # local clock, like sale_date and purchase_date
    created_at = Column(DateTime(timezone=True), default=datetime.now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=datetime.now,
                        server_default=func.now(), onupdate=datetime.now)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    purchase_details = relationship("PurchaseDetail", back_populates="product")
    sale_details = relationship("SaleDetail", back_populates="product")

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock_level={self.stock_level})>"
