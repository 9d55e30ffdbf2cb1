"""
Database Models - Retail Schema

Relational schema for the retail snapshot:

Entity Tables:
- Product: catalog with 2-decimal cost and price
- Store: store attributes and open date
- CalendarDay: date dimension derived from the sales date range

Fact / Join Tables:
- Sale: one row per sale event
- Inventory: stock on hand per (store, product)
"""

import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENTITY TABLES
# =============================================================================

class Product(Base):
    """
    Product Table

    A sellable SKU. Margin (price - cost) may be negative for loss
    leaders, but neither price nor cost may be.
    """
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(100))
    product_category: Mapped[Optional[str]] = mapped_column(String(50))
    product_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    product_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    sales: Mapped[List["Sale"]] = relationship(back_populates="product")
    inventory: Mapped[List["Inventory"]] = relationship(back_populates="product")

    __table_args__ = (
        CheckConstraint("product_cost >= 0", name="ck_products_cost_non_negative"),
        CheckConstraint("product_price >= 0", name="ck_products_price_non_negative"),
        Index("ix_products_category", "product_category"),
    )


class Store(Base):
    """Store Table"""
    __tablename__ = "stores"

    store_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    store_name: Mapped[Optional[str]] = mapped_column(String(200))
    store_city: Mapped[Optional[str]] = mapped_column(String(100))
    store_location: Mapped[Optional[str]] = mapped_column(String(200))
    store_open_date: Mapped[Optional[datetime.date]] = mapped_column(Date)

    sales: Mapped[List["Sale"]] = relationship(back_populates="store")
    inventory: Mapped[List["Inventory"]] = relationship(back_populates="store")

    __table_args__ = (
        Index("ix_stores_city", "store_city"),
    )


class CalendarDay(Base):
    """
    Calendar Table

    One row per day between the first and last sale date. All
    attributes are derived from `date`.
    """
    __tablename__ = "calendar"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    weekday_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1=Monday
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    month_name: Mapped[str] = mapped_column(String(15), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    is_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (
        Index("ix_calendar_year_month", "year", "month"),
    )


# =============================================================================
# FACT TABLES
# =============================================================================

class Inventory(Base):
    """Inventory snapshot: stock on hand for one (store, product) pair"""
    __tablename__ = "inventory"

    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.store_id"), primary_key=True
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.product_id"), primary_key=True
    )
    stock_on_hand: Mapped[Optional[int]] = mapped_column(Integer, default=0, server_default="0")

    store: Mapped["Store"] = relationship(back_populates="inventory")
    product: Mapped["Product"] = relationship(back_populates="inventory")


class Sale(Base):
    """Sale Fact Table, grain at one sale event"""
    __tablename__ = "sales"

    sale_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.store_id"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.product_id"), nullable=False
    )
    units: Mapped[int] = mapped_column(Integer, nullable=False)

    store: Mapped["Store"] = relationship(back_populates="sales")
    product: Mapped["Product"] = relationship(back_populates="sales")

    __table_args__ = (
        Index("ix_sales_date", "date"),
        Index("ix_sales_store_product", "store_id", "product_id"),
    )


TABLE_MODELS = {
    "products": Product,
    "stores": Store,
    "inventory": Inventory,
    "sales": Sale,
    "calendar": CalendarDay,
}
