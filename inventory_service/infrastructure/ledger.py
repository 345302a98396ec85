from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shared.core import get_logger
from inventory_service.domain.models import AdjustmentEntry, utcnow
from inventory_service.domain.errors import LedgerWriteFailed

logger = get_logger(__name__)

def default_reason(adjustment_type: str) -> str:
    return f"{adjustment_type} adjustment"

class AdjustmentLedger:
    """
    Append-only audit trail of requested quantity changes.

    Writes use their own session so that a ledger failure can never roll back
    the inventory write that preceded it. Entries are never updated or deleted.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def append(
        self,
        inventory_id: str,
        adjustment_type: str,
        quantity_change: int,
        reason: Optional[str] = None,
    ) -> AdjustmentEntry:
        entry = AdjustmentEntry(
            inventory_id=inventory_id,
            adjustment_type=adjustment_type,
            quantity_change=quantity_change,
            reason=reason or default_reason(adjustment_type),
            created_at=utcnow(),
        )
        try:
            with self.session_factory() as session:
                session.add(entry)
                session.commit()
        except (SQLAlchemyError, OverflowError) as exc:
            raise LedgerWriteFailed(
                f"Failed to record {adjustment_type} adjustment for inventory {inventory_id}"
            ) from exc
        return entry

    def list_by_inventory(self, inventory_id: str) -> list[AdjustmentEntry]:
        stmt = (
            select(AdjustmentEntry)
            .where(AdjustmentEntry.inventory_id == inventory_id)
            .order_by(AdjustmentEntry.id.asc())
        )
        with self.session_factory() as session:
            return list(session.scalars(stmt))
