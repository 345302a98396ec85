from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Optional

from inventory_service.domain.models import MAX_COUNT, MIN_DELTA

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Some backends (SQLite) hand back naive timestamps; they are stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

class ProductSummary(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None

class InventoryCreate(BaseModel):
    # Presence of product_id and quantity is checked by the store
    product_id: Optional[str] = Field(None, max_length=64)
    quantity: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    reserved_quantity: int = Field(0, ge=0, le=MAX_COUNT)
    low_stock_threshold: Optional[int] = Field(None, ge=0, le=MAX_COUNT)

class InventoryUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    reserved_quantity: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    low_stock_threshold: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    adjustment_reason: Optional[str] = None

    def changed_fields(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"adjustment_reason"})

class AdjustmentRequest(BaseModel):
    product_id: Optional[str] = Field(None, max_length=64)
    quantity_change: Optional[int] = Field(None, ge=MIN_DELTA, le=MAX_COUNT)
    adjustment_type: str = Field("manual", min_length=1, max_length=50)
    reason: Optional[str] = None

class InventoryRead(BaseModel):
    id: str
    product_id: str
    quantity: int
    reserved_quantity: int
    low_stock_threshold: int
    available_quantity: int
    low_stock: bool
    stock_status: str  # "in_stock", "low_stock", "out_of_stock"
    created_at: Optional[datetime] = None
    updated_at: datetime
    # Populated from the catalog service when it is configured
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, value):
        return as_utc(value)

class AdjustmentResult(InventoryRead):
    previous_quantity: int
    quantity_change: int
    clamped: bool
    adjustment_logged: bool

class AdjustmentEntryRead(BaseModel):
    id: int
    inventory_id: str
    adjustment_type: str
    quantity_change: int
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("created_at")
    @classmethod
    def normalize_timezone(cls, value):
        return as_utc(value)

class InventorySummary(BaseModel):
    total_records: int
    low_stock: int
    out_of_stock: int

class DeleteResult(BaseModel):
    success: bool = True
