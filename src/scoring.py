"""
Net Corporate Power (NCP): the weighted composite used for season rankings.
Everything here is a pure function of its inputs.
"""
from typing import Dict, Iterable, List, Mapping, Optional

import objects as G

CASH_CAP = 10_000_000
CASH_WEIGHT = 0.1
ASSET_WEIGHT = 0.15
MARKET_CAP_WEIGHT = 50  # per million
PRODUCTION_WEIGHT = 2
MARKET_SHARE_WEIGHT = 10
LOBBYING_WEIGHT = 5
MEDIA_WEIGHT = 3
ALLIANCE_WEIGHT = 2


def calculate_ncp(
    company: G._CompanyInstance,
    asset_values: Mapping[str, float],
    market_share: Optional[Mapping[str, float]] = None,
    alliance_strength: float = 0,
) -> G.NCPBreakdown:
    cash = min(company.cash, CASH_CAP) * CASH_WEIGHT
    assets = sum(asset_values.get(a, 0) for a in company.assets) * ASSET_WEIGHT
    market_cap = (company.market_cap / 1_000_000) * MARKET_CAP_WEIGHT
    production = company.production_capacity * PRODUCTION_WEIGHT
    share = sum((market_share or {}).values()) * MARKET_SHARE_WEIGHT
    lobbying = company.lobbying_power * LOBBYING_WEIGHT
    media = company.media_influence * MEDIA_WEIGHT
    alliance = alliance_strength * ALLIANCE_WEIGHT
    total = round(cash + assets + market_cap + production + share + lobbying + media + alliance)
    return G.NCPBreakdown(
        cash=cash,
        assets=assets,
        market_cap=market_cap,
        production=production,
        market_share=share,
        lobbying=lobbying,
        media=media,
        alliance=alliance,
        total=total,
    )


def rank_companies_by_ncp(
    companies: Iterable[G._CompanyInstance],
    asset_values: Mapping[str, float],
    market_shares: Optional[Mapping[str, Mapping[str, float]]] = None,
    alliance_strengths: Optional[Mapping[str, float]] = None,
) -> List[G.RankingEntry]:
    market_shares = market_shares or {}
    alliance_strengths = alliance_strengths or {}
    scored = [
        (c, calculate_ncp(c, asset_values, market_shares.get(c.id, {}), alliance_strengths.get(c.id, 0)))
        for c in companies
    ]
    # sorted() is stable: equal totals keep their input order
    scored = sorted(scored, key=lambda pair: pair[1].total, reverse=True)
    return [
        G.RankingEntry(company_id=c.id, name=c.name, rank=i + 1, ncp=ncp)
        for i, (c, ncp) in enumerate(scored)
    ]


def get_oligarchs(rankings: List[G.RankingEntry], top_n: int = 10) -> List[G.RankingEntry]:
    return rankings[:top_n]

# -----------------------------------
# World-derived inputs
# -----------------------------------

def compute_asset_values(world: G._WorldState) -> Dict[str, float]:
    return {asset_id: asset.build_cost for asset_id, asset in world.assets.items()}


def compute_production_capacity(world: G._WorldState, company_id: str) -> float:
    return sum(
        amount
        for asset in world.company_assets(company_id)
        for amount in asset.production_per_tick.values()
        if amount > 0
    )


def compute_market_shares(world: G._WorldState, now: Optional[float] = None) -> Dict[str, Dict[str, float]]:
    """
    Per-industry share (%) of positive production, keyed by company id.

    With `now`, events active at that time move each producing company in an
    impacted industry by the impact's `market_share_shift` points (0..100).
    """
    by_industry: Dict[str, Dict[str, float]] = {}
    for company in world.companies.values():
        by_industry.setdefault(company.industry, {})[company.id] = compute_production_capacity(world, company.id)
    shifts: Dict[str, float] = {}
    if now is not None:
        for event in world.events.active_events:
            if now >= event.expires_at:
                continue
            for industry, impact in event.effects.industry_impacts.items():
                shifts[industry] = shifts.get(industry, 0.0) + impact.market_share_shift
    shares: Dict[str, Dict[str, float]] = {}
    for industry, production in by_industry.items():
        total = sum(production.values())
        for company_id, amount in production.items():
            share = amount / total * 100 if total > 0 else 0.0
            if share > 0 and shifts.get(industry):
                share = max(0.0, min(100.0, share + shifts[industry]))
            shares.setdefault(company_id, {})[industry] = share
    return shares
