"""Relative stock adjustments.

The quantity write is authoritative and the ledger entry is best-effort: once
the record is committed the caller gets a successful result, and a lost
ledger entry is reported through ``adjustment_logged`` and a warning log.
"""

from dataclasses import dataclass
from typing import Optional

from shared.core import get_logger
from inventory_service.domain.models import InventoryRecord
from inventory_service.domain.errors import InvalidArgument, LedgerWriteFailed
from inventory_service.infrastructure.repository import InventoryRecordStore
from inventory_service.infrastructure.ledger import AdjustmentLedger

logger = get_logger(__name__)

@dataclass
class AdjustmentOutcome:
    record: InventoryRecord
    previous_quantity: int
    quantity_change: int
    adjustment_logged: bool

    @property
    def clamped(self) -> bool:
        return self.previous_quantity + self.quantity_change != self.record.quantity

def record_ledger_entry(
    ledger: AdjustmentLedger,
    inventory_id: str,
    adjustment_type: str,
    quantity_change: int,
    reason: Optional[str],
) -> bool:
    """Append to the ledger; a failure is logged and reported as False."""
    try:
        ledger.append(inventory_id, adjustment_type, quantity_change, reason)
    except LedgerWriteFailed as exc:
        logger.warning(
            "Inventory updated but adjustment was not recorded in the ledger",
            exc_info=exc,
            extra={'extra_fields': {
                'inventory_id': inventory_id,
                'adjustment_type': adjustment_type,
                'quantity_change': quantity_change,
            }},
        )
        return False
    return True

class AdjustmentEngine:
    def __init__(self, store: InventoryRecordStore, ledger: AdjustmentLedger):
        self.store = store
        self.ledger = ledger

    def adjust(
        self,
        product_id: Optional[str],
        quantity_change: Optional[int],
        adjustment_type: str = "manual",
        reason: Optional[str] = None,
    ) -> AdjustmentOutcome:
        if not product_id or quantity_change is None:
            raise InvalidArgument("Product ID and quantity change are required")

        record, previous_quantity = self.store.apply_delta(product_id, quantity_change)

        logged = record_ledger_entry(
            self.ledger, record.id, adjustment_type, quantity_change, reason
        )
        outcome = AdjustmentOutcome(
            record=record,
            previous_quantity=previous_quantity,
            quantity_change=quantity_change,
            adjustment_logged=logged,
        )

        logger.info(
            "Inventory adjusted",
            extra={'extra_fields': {
                'product_id': product_id,
                'inventory_id': record.id,
                'adjustment_type': adjustment_type,
                'previous_quantity': previous_quantity,
                'quantity_change': quantity_change,
                'quantity': record.quantity,
                'clamped': outcome.clamped,
            }},
        )
        return outcome
