from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from stockapi.core.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    sale_date = Column(DateTime, nullable=False, default=datetime.now)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    tax = Column(Numeric(15, 2), nullable=False, default=0)
    net_amount = Column(Numeric(15, 2), nullable=False, default=0)

    user = relationship("User", back_populates="sales")
    details = relationship(
        "SaleDetail",
        back_populates="sale",
        cascade="all, delete-orphan",
    )
    invoices = relationship("Invoice", back_populates="sale")


class SaleDetail(Base):
    __tablename__ = "sale_details"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_details_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    sub_total = Column(Numeric(15, 2), nullable=False, default=0)

    sale = relationship("Sale", back_populates="details")
    product = relationship("Product", back_populates="sale_details")
