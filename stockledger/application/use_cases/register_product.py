"""Register Product Use Case: open an inventory record, optionally from legacy fields."""

from stockledger.application.dto.requests import RegisterProductRequest
from stockledger.application.dto.responses import ProductInventoryResponse
from stockledger.application.use_cases.converters import product_to_response
from stockledger.config import get_logger
from stockledger.core.entities.inventory import ProductInventory
from stockledger.core.services.stock_movement import StockMovementService

logger = get_logger(__name__)


class RegisterProductUseCase:
    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    @staticmethod
    def build_product(request: RegisterProductRequest) -> ProductInventory:
        if request.legacy:
            return ProductInventory.from_legacy(
                request.product_id,
                request.current_stock,
                request.weighted_average_cost,
                name=request.name,
                category=request.category,
                selling_price=request.selling_price,
                reorder_point=request.reorder_point,
                reorder_quantity=request.reorder_quantity,
                supplier_id=request.supplier_id,
            )
        return ProductInventory(
            product_id=request.product_id,
            name=request.name,
            category=request.category,
            current_stock=request.current_stock,
            weighted_average_cost=request.weighted_average_cost,
            last_purchase_cost=request.weighted_average_cost,
            selling_price=request.selling_price,
            reorder_point=request.reorder_point or 0,
            reorder_quantity=request.reorder_quantity or 0,
            supplier_id=request.supplier_id,
        )

    async def execute(self, request: RegisterProductRequest) -> ProductInventory:
        logger.info(
            "register_product_requested",
            product_id=request.product_id,
            legacy=request.legacy,
        )
        service = await self._get_movement_service()
        return await service.register_product(self.build_product(request))

    def to_response(self, product: ProductInventory) -> ProductInventoryResponse:
        return product_to_response(product)
