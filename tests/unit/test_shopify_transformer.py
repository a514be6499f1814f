"""
Tests for app.connectors.shopify.transformer.
"""
import pytest
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from app.aggregator.timeseries_engine import compute_time_series
from app.aggregator.total_engine import compute_total
from app.connectors.shopify.transformer import transform_orders
from app.models.sample_models import (
    OrderCountAggregateSample,
    OrderSample,
    ReconciliationMode,
    RevenueAggregateSample,
)


@pytest.fixture
def shopify_orders() -> List[Dict[str, Any]]:
    """Orders as returned by the Shopify Admin API."""
    return [
        {
            "id": 1,
            "order_number": 1001,
            "created_at": "2024-01-01T09:15:00-05:00",
            "financial_status": "paid",
            "subtotal_price": "90.00",
            "total_price": "99.90",
            "total_tax": "9.90",
            "currency": "CAD",
        },
        {
            "id": 2,
            "order_number": 1002,
            "created_at": "2024-01-01T12:00:00Z",
            "financial_status": "partially_paid",
            "total_price": "10.10",
        },
        {
            "id": 3,
            "order_number": 1003,
            "created_at": "2024-01-02T12:00:00Z",
            "financial_status": "refunded",
            "subtotal_price": "500.00",
        },
        {
            "id": 4,
            "order_number": 1004,
            "created_at": "2024-01-02T16:00:00Z",
            "financial_status": "paid",
            "subtotal_price": "25.55",
        },
        {
            "id": 5,
            "order_number": 1005,
            "created_at": None,
            "financial_status": "paid",
            "subtotal_price": "1.00",
        },
    ]


class TestTransformOrders:
    """Tests for transform_orders function."""

    def test_order_samples(self, shopify_orders):
        samples = transform_orders(shopify_orders, "org_1", "int_1")
        orders = [s for s in samples if isinstance(s, OrderSample)]

        assert [s.value for s in orders] == [
            Decimal("90.00"),
            Decimal("10.10"),
            Decimal("25.55"),
        ]
        assert orders[0].metadata["orderNumber"] == 1001
        assert orders[0].metadata["currency"] == "CAD"
        assert orders[1].metadata["currency"] == "USD"
        assert all(s.organization_id == "org_1" for s in samples)

    def test_daily_aggregates(self, shopify_orders):
        samples = transform_orders(shopify_orders, "org_1", "int_1")
        revenue = {
            s.date_recorded: s.value for s in samples if isinstance(s, RevenueAggregateSample)
        }
        counts = {
            s.date_recorded: s.value
            for s in samples
            if isinstance(s, OrderCountAggregateSample)
        }
        assert revenue == {date(2024, 1, 1): Decimal("100.10"), date(2024, 1, 2): Decimal("25.55")}
        assert counts == {date(2024, 1, 1): Decimal("2"), date(2024, 1, 2): Decimal("1")}

    def test_mixed_output_is_not_double_counted(self, shopify_orders):
        """Orders and their own daily aggregates reconcile to the order sum."""
        samples = transform_orders(shopify_orders, "org_1", "int_1")

        result = compute_total(samples)
        buckets = compute_time_series(samples, date(2024, 1, 1), date(2024, 1, 2))

        assert result.mode == ReconciliationMode.GRANULAR
        assert result.total == Decimal("125.65")
        assert sum(b.revenue for b in buckets) == result.total
        assert [b.orders for b in buckets] == [2, 1]

    def test_no_paid_orders(self):
        assert transform_orders([{"financial_status": "pending"}], "org_1", "int_1") == []
