import logging
import threading

import pytest
from sqlalchemy import select, func

from inventory_service.domain.models import AdjustmentEntry
from inventory_service.domain.errors import ConcurrentUpdate, InvalidArgument, LedgerWriteFailed, NotFound
from inventory_service.infrastructure.db import build_session_factory
from inventory_service.infrastructure.repository import InventoryRecordStore
from inventory_service.infrastructure.ledger import AdjustmentLedger
from inventory_service.application.adjustment import AdjustmentEngine

@pytest.mark.parametrize("start, change, expected", [
    (10, -3, 7),
    (10, 5, 15),
    (5, -5, 0),
    (5, -1000, 0),
    (0, 0, 0),
])
def test_adjust_applies_clamped_delta(store, adjustment_engine, start, change, expected):
    store.create("P1", start)

    outcome = adjustment_engine.adjust("P1", change)

    assert outcome.record.quantity == expected
    assert outcome.previous_quantity == start
    assert outcome.quantity_change == change
    assert outcome.clamped == (start + change < 0)
    assert store.get_by_product("P1").quantity == expected

def test_ledger_keeps_requested_delta_when_clamped(store, ledger, adjustment_engine):
    record = store.create("P1", 5)

    outcome = adjustment_engine.adjust("P1", -1000, "sale")

    assert outcome.record.quantity == 0
    assert outcome.clamped
    [entry] = ledger.list_by_inventory(record.id)
    assert entry.quantity_change == -1000
    assert entry.adjustment_type == "sale"

def test_reason_defaults_from_adjustment_type(store, ledger, adjustment_engine):
    record = store.create("P1", 5)

    adjustment_engine.adjust("P1", 10, "restock")
    adjustment_engine.adjust("P1", -1, "damage", reason="Dropped in warehouse")
    adjustment_engine.adjust("P1", 2)

    entries = ledger.list_by_inventory(record.id)
    assert [(e.adjustment_type, e.reason) for e in entries] == [
        ("restock", "restock adjustment"),
        ("damage", "Dropped in warehouse"),
        ("manual", "manual adjustment"),
    ]

@pytest.mark.parametrize("product_id, change", [(None, 3), ("", 3), ("P1", None)])
def test_adjust_validates_before_writing(store, db, adjustment_engine, product_id, change):
    store.create("P1", 5)

    with pytest.raises(InvalidArgument):
        adjustment_engine.adjust(product_id, change)

    assert store.get_by_product("P1").quantity == 5
    assert db.scalar(select(func.count(AdjustmentEntry.id))) == 0

def test_adjust_unknown_product_writes_nothing(db, adjustment_engine):
    with pytest.raises(NotFound):
        adjustment_engine.adjust("ghost", 5)
    assert db.scalar(select(func.count(AdjustmentEntry.id))) == 0

def test_ledger_outage_does_not_fail_adjustment(store, session_factory, broken_ledger_engine, caplog):
    record = store.create("P1", 10)
    engine = AdjustmentEngine(store, AdjustmentLedger(build_session_factory(broken_ledger_engine)))

    with caplog.at_level(logging.WARNING):
        outcome = engine.adjust("P1", -4, "sale")

    assert outcome.record.quantity == 6
    assert outcome.adjustment_logged is False
    with session_factory() as fresh:
        assert InventoryRecordStore(fresh).get(record.id).quantity == 6
    assert any(
        "not recorded in the ledger" in r.getMessage() and r.levelno == logging.WARNING
        for r in caplog.records
    )

def test_ledger_rejecting_delta_does_not_fail_adjustment(store, ledger, adjustment_engine):
    record = store.create("P1", 5)

    # Too wide for the ledger column: the record write clamps, the append fails
    outcome = adjustment_engine.adjust("P1", -10**20, "sale")

    assert outcome.record.quantity == 0
    assert outcome.clamped
    assert outcome.adjustment_logged is False
    assert store.get(record.id).quantity == 0
    assert ledger.list_by_inventory(record.id) == []

def test_ledger_wraps_driver_errors(ledger):
    with pytest.raises(LedgerWriteFailed):
        ledger.append("inv-1", "sale", 10**20)
    assert ledger.list_by_inventory("inv-1") == []

class RacingStore(InventoryRecordStore):
    """Lets a rival writer commit between our snapshot read and our write."""

    def __init__(self, db, rival, rival_delta, races=1, **kwargs):
        super().__init__(db, **kwargs)
        self.rival = rival
        self.rival_delta = rival_delta
        self.races = races

    def get_by_product(self, product_id):
        record = super().get_by_product(product_id)
        if self.races:
            self.races -= 1
            self.rival.apply_delta(product_id, self.rival_delta)
        return record

def test_stale_snapshot_is_reread_instead_of_overwritten(store, session_factory, ledger):
    store.create("P1", 10)
    with session_factory() as ours, session_factory() as theirs:
        racing = RacingStore(ours, rival=InventoryRecordStore(theirs), rival_delta=-3)

        outcome = AdjustmentEngine(racing, ledger).adjust("P1", -3, "sale")

    # Both deltas applied: 10 - 3 - 3, not the lost-update 7
    assert outcome.record.quantity == 4
    assert outcome.previous_quantity == 7
    assert store.get_by_product("P1").quantity == 4

def test_clamp_is_recomputed_from_fresh_snapshot(store, session_factory, ledger):
    store.create("P1", 10)
    with session_factory() as ours, session_factory() as theirs:
        racing = RacingStore(ours, rival=InventoryRecordStore(theirs), rival_delta=-8)

        outcome = AdjustmentEngine(racing, ledger).adjust("P1", -5, "sale")

    assert outcome.previous_quantity == 2
    assert outcome.record.quantity == 0
    assert outcome.clamped

def test_persistent_contention_gives_up(store, session_factory, ledger, db):
    record = store.create("P1", 10)
    with session_factory() as ours, session_factory() as theirs:
        racing = RacingStore(ours, rival=InventoryRecordStore(theirs), rival_delta=-1, races=10, max_attempts=2)

        with pytest.raises(ConcurrentUpdate):
            AdjustmentEngine(racing, ledger).adjust("P1", -3)

    assert store.get_by_product("P1").quantity == 8
    assert ledger.list_by_inventory(record.id) == []

def test_concurrent_adjustments_compose(store, session_factory, ledger):
    record = store.create("P1", 10)
    barrier = threading.Barrier(2)
    outcomes, errors = [], []

    def worker():
        with session_factory() as session:
            engine = AdjustmentEngine(InventoryRecordStore(session, max_attempts=10), ledger)
            barrier.wait()
            try:
                outcomes.append(engine.adjust("P1", -3, "sale"))
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    assert store.get_by_product("P1").quantity == 4
    assert sorted(o.previous_quantity for o in outcomes) == [7, 10]
    assert len(ledger.list_by_inventory(record.id)) == 2
