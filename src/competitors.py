"""
Personality-driven competitors. Each AI company's traits weight five action
families; the chosen action is carried out through the shared Toolset.
"""
import logging
import random
from typing import TYPE_CHECKING, List, Optional

import objects as G
from ai import AIDecision, select_decision
from assets import get_build_cost
from register import AssetTypeDefs, PersonalityDefs, TerritoryDefs

if TYPE_CHECKING:
    from actions import Toolset

logger = logging.getLogger(__name__)

EXPAND_MIN_CAPITAL = 50_000
BUILD_MIN_CAPITAL = 40_000
MANIPULATE_MIN_CAPITAL = 30_000
DEPARTMENT_MIN_CAPITAL = 20_000
MANIPULATION_COST = 30_000
SABOTAGE_COST = 25_000
MANIPULATION_DURATION_MS = 60_000
FALLBACK_RESOURCE = "steel"
FALLBACK_ASSET = "factory"


def company_power(company: G._CompanyInstance) -> float:
    return company.cash / 1000 + 10 * len(company.territories_owned) + 5 * len(company.assets)


def calculate_ai_decision(
    company: G._CompanyInstance,
    personality: G.Personality,
    player_capital: float,
    player_power: float,
    available_territories: int,
    market_cycle: G.MarketCycle,
    rng: random.Random,
    second_best_chance: float = 0.2,
) -> AIDecision:
    decisions: List[AIDecision] = []
    capital = company.cash
    power = company_power(company)

    if available_territories > 0 and capital > EXPAND_MIN_CAPITAL:
        priority = personality.expansion_rate * (1 - len(company.territories_owned) / 10)
        decisions.append(AIDecision(action="expand", priority=priority))

    if capital > BUILD_MIN_CAPITAL:
        decisions.append(AIDecision(action="build", asset_type=best_asset_for(personality, capital),
                                    priority=personality.risk_tolerance * 0.7))

    if capital > MANIPULATE_MIN_CAPITAL and personality.market_manipulation > 0.5:
        weight = 0.8 if market_cycle == G.MarketCycle.BEAR else 0.5
        resource = personality.resource_focus[0] if personality.resource_focus else FALLBACK_RESOURCE
        decisions.append(AIDecision(action="manipulate", resource_type=resource,
                                    priority=personality.market_manipulation * weight))

    if personality.aggression > 0.6 and player_power > power * 0.8:
        priority = min(0.9, personality.aggression * (player_power / (power + 1)))
        decisions.append(AIDecision(action="sabotage", priority=priority))

    if capital > DEPARTMENT_MIN_CAPITAL:
        decisions.append(AIDecision(action="invest_department", department="rnd", priority=0.4))

    decisions.append(AIDecision(action="idle", priority=0.1))
    decisions = sorted(decisions, key=lambda d: d.priority, reverse=True)
    return select_decision(decisions, rng, second_best_chance)


def best_asset_for(personality: G.Personality, capital: float) -> str:
    """Highest-output affordable asset type producing one of the focus resources."""
    best: Optional[str] = None
    best_output = 0.0
    for asset_type in sorted(AssetTypeDefs):
        if get_build_cost(asset_type) > capital:
            continue
        production = AssetTypeDefs[asset_type].production
        output = sum(production.get(res, 0) for res in personality.resource_focus)
        if output > best_output:
            best, best_output = asset_type, output
    return best or FALLBACK_ASSET


def cheapest_open_territory(world: G._WorldState, capital: float) -> Optional[str]:
    open_ids = [t for t, owner in sorted(world.territories.items()) if owner is None and t in TerritoryDefs]
    affordable = [t for t in open_ids if TerritoryDefs[t].claim_cost <= capital]
    if not affordable:
        return None
    return min(affordable, key=lambda t: TerritoryDefs[t].claim_cost)


def execute_competitor_decision(toolset: "Toolset", company_id: str, decision: AIDecision) -> bool:
    world = toolset.world
    company = world.companies[company_id]
    if decision.action == "expand":
        territory = cheapest_open_territory(world, company.cash)
        return territory is not None and toolset.claim_territory(company_id, territory)
    if decision.action == "build":
        return toolset.build_asset(company_id, decision.asset_type or FALLBACK_ASSET)
    if decision.action == "manipulate":
        personality = PersonalityDefs.get(company.personality or "")
        strength = personality.market_manipulation if personality else 0.5
        return toolset.manipulate_market(company_id, decision.resource_type or FALLBACK_RESOURCE, "up",
                                         strength, MANIPULATION_DURATION_MS, cost=MANIPULATION_COST)
    if decision.action == "sabotage":
        return toolset.sabotage(company_id, G.PLAYER_ID, SABOTAGE_COST)
    if decision.action == "invest_department":
        return toolset.upgrade_department(company_id, decision.department or "rnd")
    return decision.action == "idle"


def run_competitor(toolset: "Toolset", company: G._CompanyInstance, rng: random.Random,
                   second_best_chance: float = 0.2) -> Optional[AIDecision]:
    personality = PersonalityDefs.get(company.personality or "")
    if personality is None:
        logger.warning("%s has no known personality, skipping", company.name)
        return None
    world = toolset.world
    player = world.companies.get(G.PLAYER_ID)
    open_territories = sum(1 for owner in world.territories.values() if owner is None)
    decision = calculate_ai_decision(
        company,
        personality,
        player.cash if player else 0,
        company_power(player) if player else 0,
        open_territories,
        world.market.cycle,
        rng,
        second_best_chance,
    )
    if decision.action == "idle":
        return None
    ok = execute_competitor_decision(toolset, company.id, decision)
    logger.debug("%s (%s) -> %s %s", company.name, personality.id, decision.action, "ok" if ok else "failed")
    return decision if ok else None
