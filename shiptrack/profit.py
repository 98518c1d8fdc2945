"""
Per-product profitability: estimated profit, ROI and margin from cost,
price and marketplace fee inputs.

Every function here is pure. "Not computable" is ``None`` and is kept
distinct from a real zero profit.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float, str, None]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ProfitInputs:
    """Raw inputs; absent values count as zero."""
    cost: Decimal = ZERO
    price: Decimal = ZERO
    referral_fee_percent: Decimal = ZERO
    fulfillment_fee: Decimal = ZERO
    advertising_cost: Decimal = ZERO
    initial_investment: Decimal = ZERO


@dataclass(frozen=True)
class ProfitBreakdown:
    referral_fee: Decimal
    total_costs: Decimal
    estimated_profit: Optional[Decimal]
    roi_percentage: Optional[Decimal]
    profit_margin: Optional[Decimal]

    @property
    def is_computable(self) -> bool:
        return self.estimated_profit is not None


def to_decimal(value: Number) -> Decimal:
    """Coerce a loosely typed amount to Decimal; junk and NaN become zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def round_money(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_profitability(
    cost: Number = None,
    price: Number = None,
    referral_fee_percent: Number = None,
    fulfillment_fee: Number = None,
    advertising_cost: Number = None,
    initial_investment: Number = None,
) -> ProfitBreakdown:
    """
    Compute estimated profit and ROI.

    referral_fee     = price * referral_fee_percent / 100
    total_costs      = cost + referral_fee + fulfillment_fee + advertising_cost
    estimated_profit = price - total_costs            (only if price > 0 and cost > 0)
    roi_percentage   = profit / initial_investment * 100 if initial_investment > 0
                       else profit / cost * 100
    profit_margin    = profit / price * 100

    Values are unrounded; use ``round_money`` before storing.
    """
    inputs = ProfitInputs(
        cost=to_decimal(cost),
        price=to_decimal(price),
        referral_fee_percent=to_decimal(referral_fee_percent),
        fulfillment_fee=to_decimal(fulfillment_fee),
        advertising_cost=to_decimal(advertising_cost),
        initial_investment=to_decimal(initial_investment),
    )
    return calculate(inputs)


def calculate(inputs: ProfitInputs) -> ProfitBreakdown:
    referral_fee = inputs.price * inputs.referral_fee_percent / HUNDRED
    total_costs = inputs.cost + referral_fee + inputs.fulfillment_fee + inputs.advertising_cost

    if inputs.price <= ZERO or inputs.cost <= ZERO:
        return ProfitBreakdown(
            referral_fee=referral_fee,
            total_costs=total_costs,
            estimated_profit=None,
            roi_percentage=None,
            profit_margin=None,
        )

    profit = inputs.price - total_costs

    if inputs.initial_investment > ZERO:
        roi = profit / inputs.initial_investment * HUNDRED
    else:
        # cost > 0 is guaranteed above
        roi = profit / inputs.cost * HUNDRED

    return ProfitBreakdown(
        referral_fee=referral_fee,
        total_costs=total_costs,
        estimated_profit=profit,
        roi_percentage=roi,
        profit_margin=profit / inputs.price * HUNDRED,
    )
