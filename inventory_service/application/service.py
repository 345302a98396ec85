from typing import Optional

from shared.core import get_logger
from inventory_service.domain.models import InventoryRecord, AdjustmentEntry
from inventory_service.infrastructure.repository import InventoryRecordStore
from inventory_service.infrastructure.ledger import AdjustmentLedger
from .adjustment import record_ledger_entry
from .schemas import InventoryCreate, InventoryUpdate

logger = get_logger(__name__)

class InventoryService:
    """Direct (non-delta) record management and read queries."""

    def __init__(self, store: InventoryRecordStore, ledger: AdjustmentLedger, default_low_stock_threshold: int = 10):
        self.store = store
        self.ledger = ledger
        self.default_low_stock_threshold = default_low_stock_threshold

    def get_record(self, inventory_id: str) -> InventoryRecord:
        return self.store.get(inventory_id)

    def list_records(
        self,
        product_id: Optional[str] = None,
        low_stock_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InventoryRecord]:
        return self.store.list(product_id=product_id, low_stock_only=low_stock_only, limit=limit, offset=offset)

    def list_adjustments(self, inventory_id: str) -> list[AdjustmentEntry]:
        # Works for deleted records too: the ledger outlives them
        return self.ledger.list_by_inventory(inventory_id)

    def summary(self) -> dict:
        return self.store.summary()

    def create_record(self, data: InventoryCreate) -> InventoryRecord:
        threshold = data.low_stock_threshold
        if threshold is None:
            threshold = self.default_low_stock_threshold
        record = self.store.create(
            product_id=data.product_id,
            quantity=data.quantity,
            reserved_quantity=data.reserved_quantity,
            low_stock_threshold=threshold,
        )
        logger.info(
            "Inventory record created",
            extra={'extra_fields': {
                'inventory_id': record.id,
                'product_id': record.product_id,
                'quantity': record.quantity,
            }},
        )
        return record

    def update_record(self, inventory_id: str, data: InventoryUpdate) -> InventoryRecord:
        fields = data.changed_fields()
        snapshot = self.store.get(inventory_id)
        previous_quantity = snapshot.quantity

        record = self.store.update(inventory_id, fields, expected_version=snapshot.version)

        if data.adjustment_reason and "quantity" in fields:
            record_ledger_entry(
                self.ledger,
                record.id,
                "manual",
                fields["quantity"] - previous_quantity,
                data.adjustment_reason,
            )

        logger.info(
            "Inventory record updated",
            extra={'extra_fields': {'inventory_id': record.id, 'fields': sorted(fields)}},
        )
        return record

    def delete_record(self, inventory_id: str) -> None:
        self.store.delete(inventory_id)
        logger.info("Inventory record deleted", extra={'extra_fields': {'inventory_id': inventory_id}})
