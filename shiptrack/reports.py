"""
Reports built with pandas.

Profitability: per-product cost breakdown plus portfolio totals.
Shipments: volume and cost by month, carrier and display status.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

import pandas as pd

from shiptrack.catalog import CatalogRecord
from shiptrack.logging_config import get_logger
from shiptrack.profit import HUNDRED, ZERO, calculate_profitability, round_money, to_decimal
from shiptrack.schemas.dashboard import (
    CarrierShare,
    MonthlyShipments,
    ShipmentReport,
    ShipmentReportSummary,
    StatusCount,
)
from shiptrack.schemas.product import CostBreakdownRow, ProfitabilityReport, ProfitabilitySummary

logger = get_logger("reports")


def _share(part: Decimal, total: Decimal) -> Optional[Decimal]:
    if total <= ZERO:
        return None
    return round_money(part / total * HUNDRED)


def cost_breakdown(record: CatalogRecord) -> CostBreakdownRow:
    p = record.product
    b = calculate_profitability(
        cost=p.product_cost,
        price=p.amazon_price,
        referral_fee_percent=p.referral_fee_percent,
        fulfillment_fee=p.fulfillment_fee,
        advertising_cost=p.advertising_cost,
        initial_investment=p.initial_investment,
    )
    cost = to_decimal(p.product_cost)
    fulfillment = to_decimal(p.fulfillment_fee)
    advertising = to_decimal(p.advertising_cost)
    return CostBreakdownRow(
        product_id=p.id,
        product_name=p.name,
        product_cost=round_money(cost),
        referral_fee=round_money(b.referral_fee),
        fulfillment_fee=round_money(fulfillment),
        advertising_cost=round_money(advertising),
        total_cost=round_money(b.total_costs),
        estimated_profit=round_money(b.estimated_profit),
        profit_margin=round_money(b.profit_margin),
        roi_percentage=round_money(b.roi_percentage),
        product_cost_percentage=_share(cost, b.total_costs),
        referral_fee_percentage=_share(b.referral_fee, b.total_costs),
        fulfillment_cost_percentage=_share(fulfillment, b.total_costs),
        advertising_cost_percentage=_share(advertising, b.total_costs),
    )


def _money(value: float) -> Optional[Decimal]:
    if pd.isna(value):
        return None
    return round_money(Decimal(str(value)))


def build_report(records: Iterable[CatalogRecord]) -> ProfitabilityReport:
    """Rows ordered by estimated profit, highest first; uncomputable rows last."""
    rows: List[CostBreakdownRow] = [cost_breakdown(r) for r in records]
    if not rows:
        return ProfitabilityReport(
            summary=ProfitabilitySummary(
                total_products=0,
                computable_products=0,
                total_estimated_profit=Decimal("0.00"),
                unprofitable_products=0,
            ),
            items=[],
        )

    df = pd.DataFrame([
        {
            "profit": float(r.estimated_profit) if r.estimated_profit is not None else None,
            "roi": float(r.roi_percentage) if r.roi_percentage is not None else None,
            "margin": float(r.profit_margin) if r.profit_margin is not None else None,
        }
        for r in rows
    ]).astype(float)

    computable = df[df["profit"].notna()]
    summary = ProfitabilitySummary(
        total_products=len(df),
        computable_products=len(computable),
        total_estimated_profit=_money(computable["profit"].sum()) or Decimal("0.00"),
        average_roi_percentage=_money(computable["roi"].mean()) if len(computable) else None,
        average_profit_margin=_money(computable["margin"].mean()) if len(computable) else None,
        unprofitable_products=int((computable["profit"] < 0).sum()),
    )

    order = df.sort_values("profit", ascending=False, na_position="last", kind="stable").index
    logger.debug(f"Profitability report over {len(df)} products, {len(computable)} computable")
    return ProfitabilityReport(summary=summary, items=[rows[i] for i in order])


SHIPMENT_COLUMNS = ["shipment_date", "carrier", "status", "cost"]
DISPLAY_STATUSES = ("completed", "draft")


def _month(day: date) -> pd.Period:
    return pd.Timestamp(day).to_period("M")


def _monthly(df: pd.DataFrame, date_from: Optional[date], date_to: Optional[date]) -> List[MonthlyShipments]:
    """One row per calendar month; months without shipments inside the range are zero."""
    months = df.assign(month=[_month(d) for d in df["shipment_date"]])
    grouped = months.groupby("month").agg(shipments=("cost", "size"), shipping_cost=("cost", "sum"))

    start = _month(date_from) if date_from else (grouped.index.min() if len(grouped) else None)
    end = _month(date_to) if date_to else (grouped.index.max() if len(grouped) else None)
    if start is not None and end is not None:
        grouped = grouped.reindex(pd.period_range(start, end, freq="M"), fill_value=0)

    rows = []
    for period, row in grouped.iterrows():
        count = int(row["shipments"])
        rows.append(MonthlyShipments(
            month=str(period),
            shipments=count,
            shipping_cost=_money(row["shipping_cost"]),
            average_cost=_money(row["shipping_cost"] / count) if count else None,
        ))
    return rows


def _carriers(df: pd.DataFrame) -> List[CarrierShare]:
    """Busiest carrier first; ties by name."""
    total = len(df)
    grouped = (
        df.groupby("carrier")
        .agg(shipments=("cost", "size"), total_cost=("cost", "sum"))
        .reset_index()
        .sort_values(["shipments", "carrier"], ascending=[False, True], kind="stable")
    )
    return [
        CarrierShare(
            carrier=r.carrier,
            shipments=int(r.shipments),
            percentage=_money(r.shipments / total * 100),
            total_cost=_money(r.total_cost),
            average_cost=_money(r.total_cost / r.shipments),
        )
        for r in grouped.itertuples(index=False)
    ]


def build_shipment_report(
    shipments: Iterable,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> ShipmentReport:
    """Aggregate already-filtered shipments; statuses are the two display states."""
    df = pd.DataFrame(
        [
            (s.shipment_date, s.carrier_company, s.display_status, float(s.total_shipping_cost or 0))
            for s in shipments
        ],
        columns=SHIPMENT_COLUMNS,
    )
    total = len(df)
    total_cost = float(df["cost"].sum()) if total else 0.0
    status_counts = df["status"].value_counts()

    logger.debug(f"Shipment report over {total} shipments")
    return ShipmentReport(
        date_from=date_from,
        date_to=date_to,
        summary=ShipmentReportSummary(
            total_shipments=total,
            total_shipping_cost=_money(total_cost),
            average_shipping_cost=_money(total_cost / total) if total else None,
            active_carriers=int(df["carrier"].nunique()),
        ),
        monthly=_monthly(df, date_from, date_to),
        carriers=_carriers(df),
        statuses=[
            StatusCount(status=s, shipments=int(status_counts.get(s, 0)))
            for s in DISPLAY_STATUSES
        ],
    )
