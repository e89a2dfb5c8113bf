"""
Asset-driven AI: every tick an AI company lists what it could do with its
assets and cash, scores each option, and carries out the best one through
the same Toolset the player uses.
"""
import logging
import random
from typing import TYPE_CHECKING, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel

import objects as G
from assets import calculate_asset_profit, estimate_base_profit, get_build_cost, get_upgrade_cost
from register import AssetTypeDefs

if TYPE_CHECKING:
    from actions import Toolset

logger = logging.getLogger(__name__)

LOW_CASH_THRESHOLD = 50_000
MAX_AI_LOAN = 100_000
UPGRADE_MIN_ROI = 0.1
UPGRADE_PROFIT_GAIN = 0.3
SHUTDOWN_LOSS_THRESHOLD = -1000
LOAN_PRIORITY = 0.5
IDLE_PRIORITY = 0.1


class AIDecision(BaseModel):
    action: Literal["build", "upgrade", "shutdown", "loan", "idle",
                    "expand", "manipulate", "sabotage", "invest_department"]
    priority: float
    asset_type: Optional[str] = None
    asset_id: Optional[str] = None
    amount: float = 0
    resource_type: Optional[str] = None
    department: Optional[str] = None


def candidate_decisions(company: G._CompanyInstance, assets: Sequence[G._AssetInstance],
                        prices: Mapping[str, float]) -> List[AIDecision]:
    """All options for `company`, best first. Idle is always present."""
    decisions: List[AIDecision] = []

    for asset_type in sorted(AssetTypeDefs):
        cost = get_build_cost(asset_type)
        if company.cash < cost:
            continue
        profit = estimate_base_profit(asset_type, prices)
        if profit > 0:
            decisions.append(AIDecision(action="build", asset_type=asset_type, priority=profit / cost))

    for asset in assets:
        if asset.level >= G.MAX_ASSET_LEVEL:
            continue
        cost = get_upgrade_cost(asset)
        if company.cash < cost:
            continue
        roi = UPGRADE_PROFIT_GAIN * calculate_asset_profit(asset, prices) / cost
        if roi >= UPGRADE_MIN_ROI:
            decisions.append(AIDecision(action="upgrade", asset_id=asset.id, priority=roi))

    if company.cash < LOW_CASH_THRESHOLD and assets and company.debt < company.cash * 3:
        decisions.append(AIDecision(action="loan", amount=min(MAX_AI_LOAN, company.cash * 2),
                                    priority=LOAN_PRIORITY))

    for asset in assets:
        profit = calculate_asset_profit(asset, prices)
        if profit < SHUTDOWN_LOSS_THRESHOLD:
            decisions.append(AIDecision(action="shutdown", asset_id=asset.id, priority=-profit / 1000))

    decisions.append(AIDecision(action="idle", priority=IDLE_PRIORITY))
    # stable: equal priorities keep the order above
    return sorted(decisions, key=lambda d: d.priority, reverse=True)


def decide_ai_action(company: G._CompanyInstance, assets: Sequence[G._AssetInstance],
                     prices: Mapping[str, float]) -> AIDecision:
    return candidate_decisions(company, assets, prices)[0]


def select_decision(decisions: Sequence[AIDecision], rng: random.Random,
                    second_best_chance: float = 0.0) -> AIDecision:
    """Top decision, or the runner-up with `second_best_chance`."""
    if second_best_chance > 0 and len(decisions) > 1 and rng.random() < second_best_chance:
        return decisions[1]
    return decisions[0]


def execute_ai_decision(toolset: "Toolset", company_id: str, decision: AIDecision) -> bool:
    if decision.action == "build" and decision.asset_type:
        return toolset.build_asset(company_id, decision.asset_type)
    if decision.action == "upgrade" and decision.asset_id:
        return toolset.upgrade_asset(company_id, decision.asset_id)
    if decision.action == "shutdown" and decision.asset_id:
        return toolset.shutdown_asset(company_id, decision.asset_id)
    if decision.action == "loan":
        return toolset.take_loan(company_id, decision.amount)
    return decision.action == "idle"


def run_asset_ai(toolset: "Toolset", company: G._CompanyInstance, rng: random.Random,
                 second_best_chance: float = 0.0) -> Optional[AIDecision]:
    world = toolset.world
    prices = toolset.prices()
    decisions = candidate_decisions(company, world.company_assets(company.id), prices)
    decision = select_decision(decisions, rng, second_best_chance)
    if decision.action == "idle":
        return None
    ok = execute_ai_decision(toolset, company.id, decision)
    logger.debug("%s -> %s (%.3f) %s", company.name, decision.action, decision.priority, "ok" if ok else "failed")
    return decision if ok else None
