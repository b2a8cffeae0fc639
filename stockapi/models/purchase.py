from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from stockapi.core.database import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    purchase_date = Column(DateTime, nullable=False, default=datetime.now)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)

    supplier = relationship("Supplier", back_populates="purchases")
    user = relationship("User", back_populates="purchases")
    details = relationship(
        "PurchaseDetail",
        back_populates="purchase",
        cascade="all, delete-orphan",
    )


class PurchaseDetail(Base):
    __tablename__ = "purchase_details"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_details_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(15, 2), nullable=False)
    sub_total = Column(Numeric(15, 2), nullable=False, default=0)

    purchase = relationship("Purchase", back_populates="details")
    product = relationship("Product", back_populates="purchase_details")
