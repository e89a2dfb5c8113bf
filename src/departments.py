"""Corporate departments. Every bonus is measured above level 1."""
from typing import Dict

import objects as G

MAX_DEPARTMENT_LEVEL = 10

DEPARTMENT_BASE_COSTS: Dict[str, float] = {
    "legal": 25_000,
    "pr": 20_000,
    "rnd": 30_000,
    "logistics": 22_000,
    "finance": 18_000,
}

RND_REVENUE_PER_LEVEL = 0.05
FINANCE_INTEREST_CUT_PER_LEVEL = 0.03
LOGISTICS_UPKEEP_CUT_PER_LEVEL = 0.08
MAX_LOGISTICS_UPKEEP_CUT = 0.5
PR_REPUTATION_PER_UPGRADE = 2
LEGAL_SHIELD_PER_LEVEL = 0.1


def department_level(company: G._CompanyInstance, department: str) -> int:
    return company.departments.get(department, 1)


def get_upgrade_cost(company: G._CompanyInstance, department: str) -> float:
    return DEPARTMENT_BASE_COSTS[department] * (department_level(company, department) + 1)


def can_upgrade(company: G._CompanyInstance, department: str) -> bool:
    if department not in DEPARTMENT_BASE_COSTS:
        return False
    if department_level(company, department) >= MAX_DEPARTMENT_LEVEL:
        return False
    return company.cash >= get_upgrade_cost(company, department)


def upgrade(company: G._CompanyInstance, department: str) -> float:
    """Pay for and apply one level. Callers check `can_upgrade` first."""
    cost = get_upgrade_cost(company, department)
    company.cash -= cost
    company.departments[department] = department_level(company, department) + 1
    if department == "pr":
        company.reputation = G.clamp(company.reputation + PR_REPUTATION_PER_UPGRADE)
    return cost


def revenue_multiplier(company: G._CompanyInstance) -> float:
    return 1 + (department_level(company, "rnd") - 1) * RND_REVENUE_PER_LEVEL


def interest_multiplier(company: G._CompanyInstance) -> float:
    return max(0.0, 1 - (department_level(company, "finance") - 1) * FINANCE_INTEREST_CUT_PER_LEVEL)


def upkeep_multiplier(company: G._CompanyInstance) -> float:
    cut = (department_level(company, "logistics") - 1) * LOGISTICS_UPKEEP_CUT_PER_LEVEL
    return 1 - min(MAX_LOGISTICS_UPKEEP_CUT, cut)


def shield_reputation_hit(company: G._CompanyInstance, change: float) -> float:
    """Scale down a negative reputation change by the legal department's shield."""
    if change >= 0:
        return change
    shield = min(1.0, (department_level(company, "legal") - 1) * LEGAL_SHIELD_PER_LEVEL)
    return change * (1 - shield)
