"""BizInsights — Shopify Orders → Metric Samples Transformer.

Converts raw Shopify order payloads into typed samples:
  - one `order` sample per paid order (value = subtotal, else total)
  - one `revenue` and one `orders` aggregate per day

Both granularities are written on purpose; the aggregation engines decide
which one a window trusts.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from app.aggregator.precision import to_decimal
from app.aggregator.sample_parser import parse_sample_day
from app.core.metric_registry import ORDER, ORDERS, REVENUE
from app.models.sample_models import MetricSample, build_sample
from app.core.logging import get_logger

logger = get_logger("shopify.transformer")

PAID_STATUSES = {"paid", "partially_paid"}


def _order_value(order: Dict[str, Any]) -> Decimal | None:
    """Subtotal excludes tax and shipping; fall back to the order total."""
    for key in ("subtotal_price", "total_price"):
        value = to_decimal(order.get(key))
        if value is not None:
            return value
    return None


def transform_orders(
    orders: List[Dict[str, Any]],
    organization_id: str,
    integration_id: str,
    default_currency: str = "USD",
) -> List[MetricSample]:
    """Transform raw Shopify orders into order samples plus daily aggregates."""
    samples: List[MetricSample] = []
    daily_revenue: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
    daily_orders: Dict[date, int] = defaultdict(int)
    skipped = 0

    for order in orders:
        if order.get("financial_status") not in PAID_STATUSES:
            continue

        value = _order_value(order)
        day = parse_sample_day(order.get("created_at"))
        if value is None or value < 0 or day is None:
            skipped += 1
            continue

        samples.append(
            build_sample(
                metric_type=ORDER,
                value=value,
                date_recorded=day,
                organization_id=organization_id,
                integration_id=integration_id,
                metadata={
                    "orderId": order.get("id"),
                    "orderNumber": order.get("order_number"),
                    "currency": order.get("currency") or default_currency,
                    "financialStatus": order.get("financial_status"),
                    "totalPrice": order.get("total_price"),
                    "subtotalPrice": order.get("subtotal_price"),
                    "totalTax": order.get("total_tax"),
                    "createdAt": order.get("created_at"),
                },
            )
        )
        daily_revenue[day] += value
        daily_orders[day] += 1

    for day in sorted(daily_revenue):
        samples.append(
            build_sample(
                metric_type=REVENUE,
                value=daily_revenue[day],
                date_recorded=day,
                organization_id=organization_id,
                integration_id=integration_id,
                metadata={"source": "shopify_orders_sync", "orderCount": daily_orders[day]},
            )
        )
        samples.append(
            build_sample(
                metric_type=ORDERS,
                value=Decimal(daily_orders[day]),
                date_recorded=day,
                organization_id=organization_id,
                integration_id=integration_id,
                metadata={"source": "shopify_orders_sync"},
            )
        )

    if skipped:
        logger.warning(
            f"Skipped {skipped} Shopify orders without a usable value or date",
            extra={"organization_id": organization_id, "skipped": skipped},
        )
    logger.info(
        f"Transformed {len(orders)} Shopify orders into {len(samples)} samples across {len(daily_revenue)} days",
        extra={"organization_id": organization_id, "integration_id": integration_id},
    )
    return samples
