"""
Company creation and the equity model (shares, ownership, buyouts).

Every operation keeps ``free_float + sum(shareholders) == total_shares``.
"""
import logging
import random
from typing import Any, Dict, Literal, Mapping, NamedTuple, Optional, Tuple

import objects as G

logger = logging.getLogger(__name__)

TOTAL_SHARES = 1_000_000
FLOAT_FRACTION = 0.3
DEFAULT_BUYOUT_PREMIUM = 1.3
SHARE_PRICE_MIN_MULTIPLIER = 0.5
SHARE_PRICE_MAX_MULTIPLIER = 1.5


class BuyoutResult(NamedTuple):
    target: G._CompanyInstance
    payout: float
    founder_state: Literal["founder_emeritus", "new_company"]


def create_company(company_id: str, name: str, industry: str, ceo_id: str,
                   is_player: bool = False, starting_cash: float = 100_000) -> G._CompanyInstance:
    free_float = int(TOTAL_SHARES * FLOAT_FRACTION)
    share_price = starting_cash / TOTAL_SHARES
    return G._CompanyInstance(
        id=company_id,
        name=name,
        industry=industry,
        ceo_id=ceo_id,
        is_player=is_player,
        cash=starting_cash,
        total_shares=TOTAL_SHARES,
        free_float=free_float,
        shareholders={ceo_id: TOTAL_SHARES - free_float},
        share_price=share_price,
        market_cap=share_price * TOTAL_SHARES,
    )


def shares_held(company: G._CompanyInstance) -> int:
    return sum(company.shareholders.values())


def buy_shares(company: G._CompanyInstance, buyer_id: str, shares: int,
               price: Optional[float] = None) -> Tuple[float, bool]:
    """Move shares from the float to `buyer_id`. Cash is the caller's business."""
    if shares <= 0 or shares > company.free_float:
        return 0.0, False
    unit_price = company.share_price if price is None else price
    company.free_float -= shares
    company.shareholders[buyer_id] = company.shareholders.get(buyer_id, 0) + shares
    return shares * unit_price, True


def sell_shares(company: G._CompanyInstance, holder_id: str, shares: int,
                price: Optional[float] = None) -> Tuple[float, bool]:
    owned = company.shareholders.get(holder_id, 0)
    if shares <= 0 or shares > owned:
        return 0.0, False
    unit_price = company.share_price if price is None else price
    remaining = owned - shares
    if remaining:
        company.shareholders[holder_id] = remaining
    else:
        del company.shareholders[holder_id]
    company.free_float += shares
    return shares * unit_price, True


def release_holdings(company: G._CompanyInstance, holder_id: str) -> int:
    """Return everything `holder_id` owns of `company` to the float."""
    shares = company.shareholders.pop(holder_id, 0)
    company.free_float += shares
    return shares


def update_share_price(
    company: G._CompanyInstance,
    rng: random.Random,
    revenue_change: float = 0,
    event_impact: float = 0,
    sentiment_impact: float = 0,
    market_trend: float = 0,
) -> float:
    multiplier = (
        (1 + revenue_change * 0.5)
        * (1 + event_impact * 0.2)
        * (1 + sentiment_impact * 0.1)
        * (1 + market_trend * 0.05)
        * (1 + (rng.random() - 0.5) * 0.02)
    )
    multiplier = max(SHARE_PRICE_MIN_MULTIPLIER, min(SHARE_PRICE_MAX_MULTIPLIER, multiplier))
    company.share_price *= multiplier
    company.market_cap = company.share_price * company.total_shares
    return multiplier


def get_ownership_percentage(company: G._CompanyInstance, holder_id: str) -> float:
    if company.total_shares <= 0:
        return 0.0
    return company.shareholders.get(holder_id, 0) / company.total_shares * 100


def is_buyout_threshold(company: G._CompanyInstance, holder_id: str) -> bool:
    return get_ownership_percentage(company, holder_id) > 50


def execute_buyout(target: G._CompanyInstance, acquirer_id: str, acquirer_name: str,
                   premium: float = DEFAULT_BUYOUT_PREMIUM) -> BuyoutResult:
    """Turn `target` into a subsidiary of `acquirer_id`.

    All privately held shares are consolidated into the acquirer's holding;
    the float is left as it was.
    """
    payout = target.market_cap * premium
    founder_state: Literal["founder_emeritus", "new_company"] = (
        "founder_emeritus" if target.is_player else "new_company"
    )
    held = shares_held(target)
    target.shareholders = {acquirer_id: held} if held else {}
    target.is_subsidiary = True
    target.parent_company_id = acquirer_id
    target.ceo_id = acquirer_id
    if target.is_player:
        target.is_founder_emeritus = True
    logger.info("%s acquired %s (payout %.0f, %s)", acquirer_name, target.name, payout, founder_state)
    return BuyoutResult(target, payout, founder_state)


def calculate_portfolio_value(company: G._CompanyInstance, asset_values: Mapping[str, float]) -> float:
    return company.cash + sum(asset_values.get(a, 0) for a in company.assets) - company.debt

# -----------------------------------
# Legacy shape migration
# -----------------------------------

_LEGACY_COMPANY_FIELDS = {
    "capital": "cash",
    "raw_resources": "resources",
    "brand_reputation": "reputation",
    "territories": "territories_owned",
}


def migrate_legacy_company(raw: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(raw)
    migrated = False
    for old, new in _LEGACY_COMPANY_FIELDS.items():
        if old in data:
            value = data.pop(old)
            data.setdefault(new, value)
            migrated = True
    if "free_float" not in data and "total_shares" in data:
        data["free_float"] = data["total_shares"] - sum(data.get("shareholders", {}).values())
        migrated = True
    if migrated:
        logger.warning("Migrated legacy company record %s", data.get("id"))
    return data
