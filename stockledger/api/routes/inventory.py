"""Inventory endpoints: products, stock movements, ledger history."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_add_transaction_use_case,
    get_adjust_inventory_use_case,
    get_app_settings,
    get_ledger_svc,
    get_products,
    get_reconcile_ledger_use_case,
    get_reduce_stock_use_case,
    get_register_product_use_case,
    get_replenish_stock_use_case,
    get_transfer_stock_use_case,
)
from stockledger.application.dto.requests import (
    ActorRequest,
    AddTransactionRequest,
    AdjustInventoryRequest,
    ReduceStockRequest,
    RegisterProductRequest,
    ReplenishStockRequest,
    TransferStockRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    PricingResponse,
    ProductInventoryResponse,
    ReconciliationResponse,
    StockMovementResponse,
    TransactionHistoryItemResponse,
    TransactionHistoryResponse,
    TransferStockResponse,
)
from stockledger.application.use_cases import (
    AddTransactionUseCase,
    AdjustInventoryUseCase,
    ReconcileLedgerUseCase,
    ReduceStockUseCase,
    RegisterProductUseCase,
    ReplenishStockUseCase,
    TransferStockUseCase,
)
from stockledger.application.use_cases.converters import (
    product_to_response,
    transaction_to_response,
)
from stockledger.config import Settings
from stockledger.core.entities.inventory import TransactionType
from stockledger.core.exceptions import ProductNotFoundError
from stockledger.core.services import LedgerService
from stockledger.core.services.cost_ledger import is_profitable, pricing_recommendation
from stockledger.infrastructure.storage.sqlite import SQLiteProductStore

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.post(
    "/products",
    response_model=ProductInventoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def register_product(
    request: RegisterProductRequest,
    use_case: RegisterProductUseCase = Depends(get_register_product_use_case),
) -> ProductInventoryResponse:
    """Open an inventory record for a product."""
    product = await use_case.execute(request)
    return use_case.to_response(product)


@router.get("/products", response_model=list[ProductInventoryResponse])
async def list_products(
    active_only: bool = False,
    store: SQLiteProductStore = Depends(get_products),
) -> list[ProductInventoryResponse]:
    products = await store.list_products(active_only=active_only)
    return [product_to_response(p) for p in products]


@router.get(
    "/products/{product_id}",
    response_model=ProductInventoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: str,
    store: SQLiteProductStore = Depends(get_products),
) -> ProductInventoryResponse:
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product_to_response(product)


@router.get(
    "/products/{product_id}/pricing",
    response_model=PricingResponse,
    responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
)
async def get_pricing(
    product_id: str,
    margin: float | None = Query(default=None, ge=0),
    store: SQLiteProductStore = Depends(get_products),
    settings: Settings = Depends(get_app_settings),
) -> PricingResponse:
    """Recommended selling price at the target margin over WAC."""
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    target = margin if margin is not None else settings.inventory.default_margin_percent
    pricing = pricing_recommendation(
        product.weighted_average_cost, product.selling_price, target
    )
    return PricingResponse(
        product_id=product.product_id,
        weighted_average_cost=product.weighted_average_cost,
        selling_price=product.selling_price,
        recommended_price=pricing.recommended_price,
        minimum_price=pricing.minimum_price,
        current_margin=pricing.current_margin,
        recommended_margin=pricing.recommended_margin,
        profit_per_unit=pricing.profit_per_unit,
        is_profitable=is_profitable(product.selling_price, product.weighted_average_cost),
    )


@router.post(
    "/replenish",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
)
async def replenish_stock(
    request: ReplenishStockRequest,
    use_case: ReplenishStockUseCase = Depends(get_replenish_stock_use_case),
) -> StockMovementResponse:
    """Receive purchased units with WAC recalculation."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/reduce",
    response_model=StockMovementResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reduce_stock(
    request: ReduceStockRequest,
    use_case: ReduceStockUseCase = Depends(get_reduce_stock_use_case),
) -> StockMovementResponse:
    """Remove units at the current WAC with a balance check."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/adjust",
    response_model=StockMovementResponse,
    responses={404: {"model": ErrorResponse}},
)
async def adjust_inventory(
    request: AdjustInventoryRequest,
    use_case: AdjustInventoryUseCase = Depends(get_adjust_inventory_use_case),
) -> StockMovementResponse:
    """Increase, decrease or correct stock with a recorded reason."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/transactions",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def add_transaction(
    request: AddTransactionRequest,
    use_case: AddTransactionUseCase = Depends(get_add_transaction_use_case),
) -> StockMovementResponse:
    """Quick entry: the transaction type decides the movement."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/transfer",
    response_model=TransferStockResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def transfer_stock(
    request: TransferStockRequest,
    use_case: TransferStockUseCase = Depends(get_transfer_stock_use_case),
) -> TransferStockResponse:
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/history", response_model=TransactionHistoryResponse)
async def get_transaction_history(
    product_id: str | None = None,
    type: TransactionType | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = Query(default=None, gt=0),
    service: LedgerService = Depends(get_ledger_svc),
) -> TransactionHistoryResponse:
    """Ledger rows, newest first, with the running stock total."""
    entries = await service.get_transaction_history(
        product_id=product_id,
        transaction_type=type,
        start=start,
        end=end,
        limit=limit,
    )
    return TransactionHistoryResponse(
        items=[
            TransactionHistoryItemResponse(
                transaction=transaction_to_response(e.transaction),
                running_total=e.running_total,
            )
            for e in entries
        ],
        total=len(entries),
    )


@router.get(
    "/products/{product_id}/reconcile",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reconcile_product(
    product_id: str,
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> ReconciliationResponse:
    """Compare current stock against the ledger."""
    result = await use_case.execute(product_id)
    return use_case.to_response(result)


@router.post(
    "/products/{product_id}/reconcile",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def repair_product(
    product_id: str,
    request: ActorRequest,
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> ReconciliationResponse:
    """Record the drift as an adjustment and clear the reconciliation flag."""
    result = await use_case.execute(product_id, repair=True, actor_id=request.actor_id)
    return use_case.to_response(result)
