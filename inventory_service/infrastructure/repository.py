"""Inventory record store.

One row per product. Every write goes through the mapper's version check
(``UPDATE ... WHERE id = ? AND version = ?``), so a writer holding a stale
snapshot fails instead of silently overwriting a concurrent change.
"""

from typing import Optional
from sqlalchemy import select, func, case, and_, not_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core import get_logger
from inventory_service.domain.models import InventoryRecord, MAX_COUNT, utcnow
from inventory_service.domain.errors import AlreadyExists, ConcurrentUpdate, InvalidArgument, NotFound

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("quantity", "reserved_quantity", "low_stock_threshold")

class InventoryRecordStore:
    def __init__(self, db: Session, max_attempts: int = 5):
        self.db = db
        self.max_attempts = max_attempts

    def get(self, inventory_id: str) -> InventoryRecord:
        record = self.db.get(InventoryRecord, inventory_id, populate_existing=True)
        if record is None:
            raise NotFound("Inventory record not found")
        return record

    def get_by_product(self, product_id: str) -> InventoryRecord:
        stmt = (
            select(InventoryRecord)
            .where(InventoryRecord.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        record = self.db.scalars(stmt).first()
        if record is None:
            raise NotFound(f"No inventory record for product {product_id}")
        return record

    def exists_for_product(self, product_id: str) -> bool:
        stmt = select(InventoryRecord.id).where(InventoryRecord.product_id == product_id)
        return self.db.scalars(stmt).first() is not None

    def create(
        self,
        product_id: Optional[str],
        quantity: Optional[int],
        reserved_quantity: int = 0,
        low_stock_threshold: int = 10,
    ) -> InventoryRecord:
        if not product_id or quantity is None:
            raise InvalidArgument("Product ID and quantity are required")
        _require_valid_counts(
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            low_stock_threshold=low_stock_threshold,
        )

        # Fast path for a readable error; the unique constraint is the real guard
        if self.exists_for_product(product_id):
            raise AlreadyExists("Inventory record already exists for this product")

        now = utcnow()
        record = InventoryRecord(
            product_id=product_id,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            low_stock_threshold=low_stock_threshold,
            created_at=now,
            updated_at=now,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "Lost create race on product uniqueness",
                extra={'extra_fields': {'product_id': product_id}},
            )
            raise AlreadyExists("Inventory record already exists for this product")
        return record

    def update(self, inventory_id: str, fields: dict, expected_version: Optional[int] = None) -> InventoryRecord:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise InvalidArgument(f"Unknown inventory fields: {', '.join(sorted(unknown))}")
        _require_valid_counts(**fields)

        record = self.get(inventory_id)
        if expected_version is not None and record.version != expected_version:
            raise ConcurrentUpdate("Inventory record was modified concurrently, retry the update")
        for name, value in fields.items():
            setattr(record, name, value)
        # Refreshed even when no field changed
        record.updated_at = utcnow()
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise ConcurrentUpdate("Inventory record was modified concurrently, retry the update")
        return record

    def delete(self, inventory_id: str) -> None:
        record = self.get(inventory_id)
        self.db.delete(record)
        self.db.commit()

    def list(
        self,
        product_id: Optional[str] = None,
        low_stock_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InventoryRecord]:
        stmt = select(InventoryRecord)
        if product_id:
            stmt = stmt.where(InventoryRecord.product_id == product_id)
        if low_stock_only:
            stmt = stmt.where(InventoryRecord.quantity < InventoryRecord.low_stock_threshold)
        stmt = (
            stmt.order_by(InventoryRecord.updated_at.desc(), InventoryRecord.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(self.db.scalars(stmt))

    def apply_delta(self, product_id: str, delta: int) -> tuple[InventoryRecord, int]:
        """
        Set quantity to max(0, quantity + delta) as one conditional write.

        Returns the updated record and the quantity it replaced. A version
        conflict means another writer committed between our read and our
        write; the snapshot is re-read and the clamp recomputed from it.
        """
        for attempt in range(1, self.max_attempts + 1):
            record = self.get_by_product(product_id)
            previous_quantity = record.quantity
            quantity = max(0, previous_quantity + delta)
            if quantity > MAX_COUNT:
                raise InvalidArgument(f"Adjustment would take quantity above {MAX_COUNT}")
            record.quantity = quantity
            record.updated_at = utcnow()
            try:
                self.db.commit()
            except StaleDataError:
                self.db.rollback()
                logger.info(
                    "Version conflict on inventory adjustment, re-reading",
                    extra={'extra_fields': {
                        'product_id': product_id,
                        'attempt': attempt,
                    }},
                )
                continue
            return record, previous_quantity

        raise ConcurrentUpdate(
            f"Inventory for product {product_id} is under heavy contention, retry the adjustment"
        )

    def summary(self) -> dict:
        empty = (InventoryRecord.quantity - InventoryRecord.reserved_quantity) <= 0
        # Same buckets as stock_status: an out-of-stock row is not also low stock
        short = and_(InventoryRecord.quantity < InventoryRecord.low_stock_threshold, not_(empty))
        stmt = select(
            func.count(InventoryRecord.id),
            func.coalesce(func.sum(case((short, 1), else_=0)), 0),
            func.coalesce(func.sum(case((empty, 1), else_=0)), 0),
        )
        total, low_stock, out_of_stock = self.db.execute(stmt).one()
        return {
            "total_records": int(total),
            "low_stock": int(low_stock),
            "out_of_stock": int(out_of_stock),
        }

def _require_valid_counts(**counts) -> None:
    for name, value in counts.items():
        if value is not None and not 0 <= value <= MAX_COUNT:
            raise InvalidArgument(f"{name} must be between 0 and {MAX_COUNT}")
