from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Text, DateTime, CheckConstraint
from datetime import datetime, timezone
from typing import Optional
import uuid

# Range of the Integer columns holding counts and deltas
MAX_COUNT = 2**31 - 1
MIN_DELTA = -(2**31)

class Base(DeclarativeBase):
    pass

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def new_inventory_id() -> str:
    return str(uuid.uuid4())

class InventoryRecord(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_non_negative"),
        CheckConstraint("low_stock_threshold >= 0", name="ck_inventory_threshold_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_inventory_id)
    # Product lives in the catalog service - unique reference, no FK
    product_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    reserved_quantity: Mapped[int] = mapped_column(Integer, default=0)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    # Every UPDATE is issued as "WHERE id = ? AND version = ?"
    __mapper_args__ = {"version_id_col": version}

    @property
    def available_quantity(self) -> int:
        return max(0, self.quantity - self.reserved_quantity)

    @property
    def low_stock(self) -> bool:
        return self.quantity < self.low_stock_threshold

    @property
    def stock_status(self) -> str:
        """Out of stock (nothing available) takes precedence over low stock."""
        if self.quantity - self.reserved_quantity <= 0:
            return "out_of_stock"
        if self.low_stock:
            return "low_stock"
        return "in_stock"

class AdjustmentEntry(Base):
    """Append-only ledger row. Outlives the inventory record it describes."""
    __tablename__ = "inventory_adjustments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Reference only - the entry must survive deletion of the record
    inventory_id: Mapped[str] = mapped_column(String(36), index=True)
    adjustment_type: Mapped[str] = mapped_column(String(50))
    quantity_change: Mapped[int] = mapped_column(Integer)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
