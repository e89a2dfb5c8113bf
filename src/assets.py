"""
Asset cost/production scaling and the asset lifecycle helpers.

Levels run 1..5. Build cost grows ×1.5 per level, upkeep linearly and output
by +30% per level above the first, scaled by the efficiency multiplier.
"""
import logging
from typing import Any, Dict, Mapping, Optional

import objects as G
from objects import MAX_ASSET_LEVEL, get_instance_id
from register import AssetTypeDefs

logger = logging.getLogger(__name__)

BUILD_COST_GROWTH = 1.5
PRODUCTION_GROWTH = 0.3


def get_build_cost(asset_type: str, level: int = 1) -> float:
    definition = AssetTypeDefs[asset_type]
    return round(definition.build_cost * BUILD_COST_GROWTH ** (level - 1))


def get_upkeep_cost(asset_type: str, level: int = 1) -> float:
    definition = AssetTypeDefs[asset_type]
    return round(definition.upkeep_cost * level)


def get_production_per_tick(asset_type: str, level: int = 1, efficiency: float = 1.0) -> Dict[str, float]:
    definition = AssetTypeDefs[asset_type]
    scale = (1 + (level - 1) * PRODUCTION_GROWTH) * efficiency
    return {res: round(amount * scale) for res, amount in definition.production.items()}


def get_upgrade_cost(asset: G._AssetInstance) -> float:
    return get_build_cost(asset.type, asset.level + 1) - get_build_cost(asset.type, asset.level)


def create_asset(asset_type: str, company_id: str, level: int = 1,
                 efficiency: float = 1.0, now: float = 0) -> G._AssetInstance:
    definition = AssetTypeDefs[asset_type]
    return G._AssetInstance(
        id=get_instance_id(f"asset-{company_id}-{asset_type}"),
        type=asset_type,
        level=level,
        build_cost=get_build_cost(asset_type, level),
        upkeep_cost=get_upkeep_cost(asset_type, level),
        production_per_tick=get_production_per_tick(asset_type, level, efficiency),
        industry=definition.industry,
        efficiency_multiplier=efficiency,
        built_at=now,
    )


def upgrade_in_place(asset: G._AssetInstance) -> None:
    """Raise the level by one and re-derive the cached figures."""
    if asset.level >= MAX_ASSET_LEVEL:
        raise ValueError(f"Asset {asset.id} is already at max level")
    asset.level += 1
    asset.build_cost = get_build_cost(asset.type, asset.level)
    asset.upkeep_cost = get_upkeep_cost(asset.type, asset.level)
    refresh_production(asset)


def refresh_production(asset: G._AssetInstance) -> None:
    asset.production_per_tick = get_production_per_tick(asset.type, asset.level, asset.efficiency_multiplier)


def calculate_asset_profit(asset: Optional[G._AssetInstance], prices: Mapping[str, float]) -> float:
    if asset is None:
        return 0.0
    upkeep = getattr(asset, "upkeep_cost", 0) or 0
    production = getattr(asset, "production_per_tick", None)
    if not isinstance(production, Mapping):
        return -upkeep
    revenue = 0.0
    for res, amount in production.items():
        if isinstance(amount, (int, float)) and amount > 0:
            revenue += amount * prices.get(res, 0)
    return revenue - upkeep


def estimate_base_profit(asset_type: str, prices: Mapping[str, float]) -> float:
    """Level-1 profit of an asset type at the given prices, used for AI ROI."""
    definition = AssetTypeDefs[asset_type]
    revenue = sum(amount * prices.get(res, 0) for res, amount in definition.production.items() if amount > 0)
    return revenue - definition.upkeep_cost


def positive_output(asset: G._AssetInstance) -> Dict[str, float]:
    return {res: amount for res, amount in asset.production_per_tick.items() if amount > 0}

# -----------------------------------
# Legacy shape migration
# -----------------------------------

def migrate_legacy_asset(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert an older asset record into the canonical shape.

    Older saves used `production_rate` (level-1 output per tick) and
    `maintenance_cost` and sometimes carried `efficiency` instead of
    `efficiency_multiplier`. Anything that still cannot be derived falls back
    to the catalog values for the asset's type and level.
    """
    if "production_per_tick" in raw and "upkeep_cost" in raw:
        return raw
    data = dict(raw)
    asset_type = data.get("type")
    level = int(data.get("level") or 1)
    efficiency = float(data.pop("efficiency", data.get("efficiency_multiplier", 1.0)))
    data["level"] = level
    data["efficiency_multiplier"] = efficiency

    if "maintenance_cost" in data:
        data.setdefault("upkeep_cost", data.pop("maintenance_cost"))
    if "production_rate" in data:
        rate = data.pop("production_rate")
        if isinstance(rate, Mapping):
            data.setdefault("production_per_tick", dict(rate))

    definition = AssetTypeDefs.get(asset_type) if asset_type else None
    if definition is not None:
        data.setdefault("upkeep_cost", get_upkeep_cost(asset_type, level))
        data.setdefault("production_per_tick", get_production_per_tick(asset_type, level, efficiency))
        data.setdefault("build_cost", get_build_cost(asset_type, level))
        data.setdefault("industry", definition.industry)
    else:
        data.setdefault("upkeep_cost", 0)
        data.setdefault("production_per_tick", {})
        data.setdefault("build_cost", 0)
        data.setdefault("industry", "unknown")
    logger.warning("Migrated legacy asset record %s", data.get("id"))
    return data
