"""
Per-resource price formation.

Prices follow ``base × demand/(supply+1) × noise × inflation × manipulation``
and are always clamped to [0.1 × base, 5 × base]. Functions mutate the
`_MarketState` handed to them; the simulation owns the only copy.
"""
import logging
import random
from typing import Literal

import objects as G
from objects import get_instance_id
from register import ResourceDefs

logger = logging.getLogger(__name__)

PRICE_FLOOR = 0.1
PRICE_CEILING = 5.0
MANIPULATION_WEIGHT = 0.2

_CYCLE_ORDER = [G.MarketCycle.BULL, G.MarketCycle.STABLE, G.MarketCycle.BEAR]
_CYCLE_MULTIPLIERS = {G.MarketCycle.BULL: 1.2, G.MarketCycle.STABLE: 1.0, G.MarketCycle.BEAR: 0.85}
_CYCLE_TREND = {G.MarketCycle.BULL: 1, G.MarketCycle.STABLE: 0, G.MarketCycle.BEAR: -1}


def create_market_state(now: float = 0) -> G._MarketState:
    state = G._MarketState(cycle_started_at=now)
    for res_id, res in ResourceDefs.items():
        state.prices[res_id] = G.ResourcePrice(
            resource_type=res_id,
            current_price=res.base_price,
            base_price=res.base_price,
            last_update=now,
        )
    return state


def clamp_price(price: float, base: float) -> float:
    return max(base * PRICE_FLOOR, min(base * PRICE_CEILING, price))


def update_prices(state: G._MarketState, now: float, rng: random.Random) -> None:
    for res_id, entry in state.prices.items():
        ratio = entry.demand / (entry.supply + 1)
        vol = max(entry.volatility, state.event_volatility)
        noise = 1 + rng.uniform(-vol, vol)
        manipulation = 1.0
        for m in state.active_manipulations:
            if m.resource_type == res_id and m.expires_at > now:
                manipulation *= m.factor
        raw = entry.base_price * ratio * noise * state.global_inflation * manipulation
        # round first so the clamp is the last word on the bounds
        entry.current_price = clamp_price(round(raw), entry.base_price)
        entry.last_update = now
    logger.debug("Prices updated: %s", {k: v.current_price for k, v in state.prices.items()})


def get_price(state: G._MarketState, resource_type: str) -> float:
    entry = state.prices.get(resource_type)
    if entry is not None:
        return entry.current_price
    res = ResourceDefs.get(resource_type)
    return res.base_price if res else 0.0


def get_prices(state: G._MarketState) -> dict:
    prices = {res_id: res.base_price for res_id, res in ResourceDefs.items()}
    prices.update({res_id: entry.current_price for res_id, entry in state.prices.items()})
    return prices


def update_supply_demand(state: G._MarketState, resource_type: str,
                         supply_change: float, demand_change: float) -> None:
    entry = state.prices.get(resource_type)
    if entry is None:
        return
    entry.supply = max(0.0, entry.supply + supply_change)
    entry.demand = max(0.0, entry.demand + demand_change)


def manipulate_market(
    state: G._MarketState,
    resource_type: str,
    direction: Literal["up", "down"],
    strength: float,
    duration_ms: float,
    now: float,
    company_id: str = G.PLAYER_ID,
) -> G.MarketManipulation:
    manipulation = G.MarketManipulation(
        id=get_instance_id(f"{resource_type}-{int(now)}"),
        company_id=company_id,
        resource_type=resource_type,
        direction=direction,
        strength=max(0.0, min(1.0, strength)),
        expires_at=now + duration_ms,
    )
    state.active_manipulations.append(manipulation)
    logger.debug("Manipulation %s on %s (%s, %.2f)", manipulation.id, resource_type, direction, manipulation.strength)
    return manipulation


def clean_expired_manipulations(state: G._MarketState, now: float) -> None:
    state.active_manipulations = [m for m in state.active_manipulations if m.expires_at > now]


def apply_inflation(state: G._MarketState, rate: float) -> None:
    state.global_inflation *= (1 + rate)

# -----------------------------------
# Market cycle
# -----------------------------------

def get_market_cycle(now: float, cycle_started_at: float, cycle_ms: float) -> G.MarketCycle:
    elapsed = max(0.0, now - cycle_started_at)
    return _CYCLE_ORDER[int(elapsed // cycle_ms) % len(_CYCLE_ORDER)]


def update_market_cycle(state: G._MarketState, now: float, cycle_ms: float) -> bool:
    """Returns True when the cycle changed."""
    cycle = get_market_cycle(now, state.cycle_started_at, cycle_ms)
    if cycle == state.cycle:
        return False
    state.cycle = cycle
    return True


def get_cycle_multiplier(cycle: G.MarketCycle) -> float:
    return _CYCLE_MULTIPLIERS[cycle]


def get_market_trend(cycle: G.MarketCycle) -> int:
    return _CYCLE_TREND[cycle]
