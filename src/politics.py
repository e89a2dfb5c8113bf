"""Government: tax, antitrust, policies, lobbying and investigations."""
import logging
from typing import List, Literal, Optional

import objects as G
from objects import clamp, get_instance_id
from register import PolicyDefs

logger = logging.getLogger(__name__)

MAX_TAX_RATE = 50
MAX_LOBBYING_TAX_CUT = 10
INVESTIGATION_PROGRESS_PER_TICK = 0.5
STRICT_REGULATION = 60
INVESTIGATION_REPUTATION_PENALTY = {"low": 2, "medium": 5, "high": 10, "critical": 20}


def create_government_state(now: float = 0) -> G._GovernmentState:
    return G._GovernmentState(last_update=now)


def policy_from_definition(policy_id: str, now: float, expires_at: Optional[float] = None) -> Optional[G._Policy]:
    definition = PolicyDefs.get(policy_id)
    if definition is None:
        return None
    return G._Policy(
        id=definition.id,
        type=definition.type,
        name=definition.name,
        description=definition.description,
        target_industry=definition.target_industry,
        effect=definition.effect.model_copy(),
        enacted_at=now,
        expires_at=expires_at,
    )


def _refresh_stance(government: G._GovernmentState) -> None:
    strictness = max((p.effect.regulation_strictness for p in government.active_policies if p.active), default=0)
    government.regulatory_stance = "strict" if strictness >= STRICT_REGULATION else "moderate"


def enact_policy(government: G._GovernmentState, policy: G._Policy, now: float) -> None:
    # Re-enacting the same policy refreshes it rather than stacking it
    government.active_policies = [p for p in government.active_policies if p.id != policy.id]
    government.active_policies.append(policy)
    if policy.effect.antitrust_level is not None:
        government.antitrust_enforcement = max(government.antitrust_enforcement,
                                               clamp(policy.effect.antitrust_level))
    _refresh_stance(government)
    government.last_update = now
    logger.info("Policy enacted: %s", policy.name)


def repeal_policy(government: G._GovernmentState, policy_id: str, now: float) -> bool:
    before = len(government.active_policies)
    government.active_policies = [p for p in government.active_policies if p.id != policy_id]
    government.last_update = now
    _refresh_stance(government)
    return len(government.active_policies) != before


def expire_policies(government: G._GovernmentState, now: float) -> List[G._Policy]:
    expired = [p for p in government.active_policies if p.expires_at is not None and now >= p.expires_at]
    for policy in expired:
        repeal_policy(government, policy.id, now)
        logger.info("Policy expired: %s", policy.name)
    return expired


def update_lobbying_influence(government: G._GovernmentState, company_id: str,
                              change: float, now: float = 0) -> float:
    current = government.lobbying_influence.get(company_id, 0)
    government.lobbying_influence[company_id] = clamp(current + change)
    government.last_update = now
    return government.lobbying_influence[company_id]


def start_investigation(
    government: G._GovernmentState,
    target_company_id: str,
    investigation_type: Literal["antitrust", "fraud", "environmental", "labor"],
    severity: Literal["low", "medium", "high", "critical"],
    now: float,
) -> G.Investigation:
    investigation = G.Investigation(
        id=get_instance_id("investigation"),
        target_company_id=target_company_id,
        type=investigation_type,
        severity=severity,
        started_at=now,
    )
    government.investigations.append(investigation)
    government.last_update = now
    logger.info("Investigation opened into %s (%s)", target_company_id, investigation_type)
    return investigation


def advance_investigations(government: G._GovernmentState) -> List[G.Investigation]:
    """Progress open investigations; returns those that just concluded."""
    concluded = []
    for investigation in government.investigations:
        if investigation.progress >= 100:
            continue
        investigation.progress = min(100.0, investigation.progress + INVESTIGATION_PROGRESS_PER_TICK)
        if investigation.progress >= 100:
            concluded.append(investigation)
    return concluded


def would_block_merger(government: G._GovernmentState, acquirer_market_cap: float,
                       target_market_cap: float, combined_market_share: float) -> bool:
    if any(p.active and p.effect.blocks_mergers for p in government.active_policies):
        return True
    if government.antitrust_enforcement > 50 and combined_market_share > 40:
        return True
    if acquirer_market_cap + target_market_cap > 500_000_000 and government.antitrust_enforcement > 70:
        return True
    return False


def get_effective_tax_rate(government: G._GovernmentState, lobbying_influence: float) -> float:
    rate = government.tax_rate - min(MAX_LOBBYING_TAX_CUT, lobbying_influence * 0.1)
    for policy in government.active_policies:
        if policy.active and policy.effect.tax_rate_change:
            rate += policy.effect.tax_rate_change
    return clamp(rate, 0, MAX_TAX_RATE)


def get_subsidy(government: G._GovernmentState, industry: str) -> float:
    return sum(
        p.effect.subsidy_amount
        for p in government.active_policies
        if p.active and p.target_industry in (None, industry)
    )
