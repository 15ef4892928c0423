"""Tests for RegisterProductUseCase."""

from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import RegisterProductRequest
from stockledger.application.use_cases import RegisterProductUseCase


@pytest.fixture
def mock_movement_service():
    service = AsyncMock()
    service.register_product.side_effect = lambda product: product
    return service


@pytest.fixture
def use_case(mock_movement_service):
    return RegisterProductUseCase(movement_service=mock_movement_service)


class TestRegisterProductUseCase:
    async def test_plain_registration(self, use_case, mock_movement_service):
        product = await use_case.execute(
            RegisterProductRequest(
                product_id="PROD001",
                name="Lavender Oil",
                current_stock=20,
                weighted_average_cost=4.5,
                reorder_point=5,
            )
        )

        mock_movement_service.register_product.assert_awaited_once()
        assert product.current_stock == 20
        assert product.last_purchase_cost == 4.5
        assert product.reorder_point == 5
        assert product.reorder_quantity == 0
        assert product.cost_history == []

    async def test_legacy_registration_seeds_history(self, use_case):
        product = await use_case.execute(
            RegisterProductRequest(
                product_id="PROD002",
                current_stock=100,
                weighted_average_cost=2.0,
                legacy=True,
            )
        )

        assert product.reorder_point == 20
        assert product.reorder_quantity == 50
        [entry] = product.cost_history
        assert entry.invoice_reference == "Initial Migration"
        assert entry.quantity == 100

    def test_response_mapping(self, use_case):
        product = RegisterProductUseCase.build_product(
            RegisterProductRequest(product_id="PROD003", name="Bottle")
        )
        response = use_case.to_response(product)
        assert response.product_id == "PROD003"
        assert response.category == "Uncategorized"
        assert response.version == 0
