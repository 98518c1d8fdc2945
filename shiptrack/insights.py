"""
Narrative insights from an external text-generation provider.

The provider is a black box: it receives a topic and a structured payload
and returns prose. This module only shapes the payload and normalises
provider failures.
"""
from typing import Any, Protocol

from shiptrack.error_handlers import InsightUnavailableError
from shiptrack.logging_config import get_logger
from shiptrack.schemas.product import ProfitabilityReport

logger = get_logger("insights")

PRODUCT_TOPIC = "product_portfolio"

# Enough rows for the provider to reason about extremes
TOP_N = 5


class InsightProvider(Protocol):
    async def generate(self, topic: str, payload: dict[str, Any]) -> str: ...


def _row(item) -> dict[str, Any]:
    return {
        "name": item.product_name,
        "estimated_profit": str(item.estimated_profit) if item.estimated_profit is not None else None,
        "roi_percentage": str(item.roi_percentage) if item.roi_percentage is not None else None,
        "profit_margin": str(item.profit_margin) if item.profit_margin is not None else None,
    }


def build_insight_payload(report: ProfitabilityReport) -> dict[str, Any]:
    """Portfolio summary plus best and worst performers. Report items arrive sorted by profit."""
    computable = [i for i in report.items if i.estimated_profit is not None]
    s = report.summary
    return {
        "summary": {
            "total_products": s.total_products,
            "computable_products": s.computable_products,
            "total_estimated_profit": str(s.total_estimated_profit),
            "average_roi_percentage": str(s.average_roi_percentage) if s.average_roi_percentage is not None else None,
            "average_profit_margin": str(s.average_profit_margin) if s.average_profit_margin is not None else None,
            "unprofitable_products": s.unprofitable_products,
        },
        "top_products": [_row(i) for i in computable[:TOP_N]],
        "bottom_products": [_row(i) for i in reversed(computable[-TOP_N:])],
        "missing_cost_data": [i.product_name for i in report.items if i.estimated_profit is None],
    }


async def generate_product_insights(provider: InsightProvider, report: ProfitabilityReport) -> str:
    """
    Raises:
        InsightUnavailableError: no provider, or the provider failed
    """
    if provider is None:
        raise InsightUnavailableError("no insight provider configured")

    payload = build_insight_payload(report)
    try:
        text = await provider.generate(PRODUCT_TOPIC, payload)
    except Exception as e:
        logger.error(f"[INSIGHT] Provider failed: {e}", exc_info=True)
        raise InsightUnavailableError("provider error", original_error=str(e)) from e

    logger.info(f"[INSIGHT] Generated {PRODUCT_TOPIC} insight ({len(text)} chars)")
    return text
