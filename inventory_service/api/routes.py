from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from inventory_service.infrastructure.db import get_db
from inventory_service.infrastructure.repository import InventoryRecordStore
from inventory_service.infrastructure.ledger import AdjustmentLedger
from inventory_service.domain.models import InventoryRecord
from inventory_service.application.service import InventoryService
from inventory_service.application.adjustment import AdjustmentEngine
from inventory_service.application.schemas import (
    AdjustmentEntryRead,
    AdjustmentRequest,
    AdjustmentResult,
    DeleteResult,
    InventoryCreate,
    InventoryRead,
    InventorySummary,
    InventoryUpdate,
    ProductSummary,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])

def get_store(request: Request, db: Session = Depends(get_db)) -> InventoryRecordStore:
    return InventoryRecordStore(db, max_attempts=request.app.state.settings.ADJUST_MAX_ATTEMPTS)

def get_ledger(request: Request) -> AdjustmentLedger:
    return AdjustmentLedger(request.app.state.ledger_session_factory)

def get_service(
    request: Request,
    store: InventoryRecordStore = Depends(get_store),
    ledger: AdjustmentLedger = Depends(get_ledger),
) -> InventoryService:
    return InventoryService(store, ledger, request.app.state.settings.DEFAULT_LOW_STOCK_THRESHOLD)

def get_engine(
    store: InventoryRecordStore = Depends(get_store),
    ledger: AdjustmentLedger = Depends(get_ledger),
) -> AdjustmentEngine:
    return AdjustmentEngine(store, ledger)

def _to_read(request: Request, record: InventoryRecord, enrich: bool = True) -> InventoryRead:
    item = InventoryRead.model_validate(record)
    catalog = request.app.state.catalog
    if enrich and catalog is not None:
        product = catalog.fetch_product(record.product_id)
        if product is not None:
            item.product = ProductSummary(**product)
    return item

@router.get("/", response_model=list[InventoryRead])
def list_inventory(
    request: Request,
    product_id: Optional[str] = Query(None, max_length=64, description="Exact product filter"),
    low_stock: bool = Query(False, description="Only records below their low-stock threshold"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    service: InventoryService = Depends(get_service),
):
    """List inventory records, most recently updated first"""
    settings = request.app.state.settings
    limit = min(limit or settings.LIST_DEFAULT_LIMIT, settings.LIST_MAX_LIMIT)
    records = service.list_records(product_id=product_id, low_stock_only=low_stock, limit=limit, offset=offset)
    items = [_to_read(request, record, enrich=False) for record in records]
    catalog = request.app.state.catalog
    if catalog is not None:
        products = catalog.fetch_products(item.product_id for item in items)
        for item in items:
            if item.product_id in products:
                item.product = ProductSummary(**products[item.product_id])
    return items

@router.get("/summary", response_model=InventorySummary)
def inventory_summary(service: InventoryService = Depends(get_service)):
    return service.summary()

@router.post("/adjust", response_model=AdjustmentResult)
def adjust_inventory(
    request: Request,
    payload: AdjustmentRequest,
    engine: AdjustmentEngine = Depends(get_engine),
):
    """Apply a signed quantity change; the result never goes below zero"""
    outcome = engine.adjust(
        payload.product_id,
        payload.quantity_change,
        adjustment_type=payload.adjustment_type,
        reason=payload.reason,
    )
    item = _to_read(request, outcome.record, enrich=False)
    return AdjustmentResult(
        **item.model_dump(),
        previous_quantity=outcome.previous_quantity,
        quantity_change=outcome.quantity_change,
        clamped=outcome.clamped,
        adjustment_logged=outcome.adjustment_logged,
    )

@router.get("/{inventory_id}", response_model=InventoryRead)
def get_inventory(request: Request, inventory_id: str, service: InventoryService = Depends(get_service)):
    return _to_read(request, service.get_record(inventory_id))

@router.get("/{inventory_id}/adjustments", response_model=list[AdjustmentEntryRead])
def list_inventory_adjustments(inventory_id: str, service: InventoryService = Depends(get_service)):
    """Ledger entries for a record, oldest first; kept after the record is deleted"""
    return service.list_adjustments(inventory_id)

@router.post("/", response_model=InventoryRead, status_code=201)
def create_inventory(request: Request, payload: InventoryCreate, service: InventoryService = Depends(get_service)):
    return _to_read(request, service.create_record(payload), enrich=False)

@router.put("/{inventory_id}", response_model=InventoryRead)
def update_inventory(
    request: Request,
    inventory_id: str,
    payload: InventoryUpdate,
    service: InventoryService = Depends(get_service),
):
    return _to_read(request, service.update_record(inventory_id, payload), enrich=False)

@router.delete("/{inventory_id}", response_model=DeleteResult)
def delete_inventory(inventory_id: str, service: InventoryService = Depends(get_service)):
    service.delete_record(inventory_id)
    return DeleteResult(success=True)
