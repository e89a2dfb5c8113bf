"""
Major world events: probabilistic triggering under a cooldown, severity rolls
and the read-only queries over the active set. Applying an event's effects to
the world is the simulation's job (see sim.EventBehavior).
"""
import logging
import random
from typing import List, Optional

import objects as G
from objects import SEVERITY_RANK, Severity
from register import EventTemplateDefs

logger = logging.getLogger(__name__)

_DURATION_MULTIPLIERS = {Severity.CRITICAL: 1.5, Severity.HIGH: 1.2}


def create_event_engine(now: float, cooldown_ms: float = 60_000, probability: float = 0.15) -> G._EventEngineState:
    return G._EventEngineState(last_event_time=now, event_cooldown_ms=cooldown_ms, event_probability=probability)


def should_trigger(engine: G._EventEngineState, now: float, rng: random.Random) -> bool:
    if now - engine.last_event_time < engine.event_cooldown_ms:
        return False
    return rng.random() < engine.event_probability


def roll_severity(rng: random.Random) -> Severity:
    # Cumulative bands on a single draw
    roll = rng.random()
    if roll < 0.1:
        return Severity.CRITICAL
    if roll < 0.4:
        return Severity.HIGH
    if roll < 0.7:
        return Severity.MEDIUM
    return Severity.LOW


def create_big_event(template_id: str, severity: Severity, now: float) -> Optional[G.BigEvent]:
    template = EventTemplateDefs.get(template_id)
    if template is None:
        return None
    duration = template.base_duration_ms * _DURATION_MULTIPLIERS.get(severity, 1.0)
    return G.BigEvent(
        id=f"event-{template_id}-{int(now)}",
        type=template_id,
        category=template.category,
        severity=severity,
        title=template.title,
        description=template.description,
        effects=template.effects_for(severity),
        duration_ms=duration,
        started_at=now,
        expires_at=now + duration,
        decisions=[d.model_copy(deep=True) for d in template.decisions],
    )


def trigger_random_event(engine: G._EventEngineState, now: float, rng: random.Random) -> Optional[G.BigEvent]:
    template_ids = sorted(EventTemplateDefs)
    if not template_ids:
        return None
    template_id = rng.choice(template_ids)
    event = create_big_event(template_id, roll_severity(rng), now)
    if event is None:
        return None
    engine.active_events.append(event)
    engine.last_event_time = now
    engine.total_events_this_season += 1
    logger.info("Event fired: %s (%s)", event.title, event.severity.value)
    return event


def update_event_engine(engine: G._EventEngineState, now: float) -> List[G.BigEvent]:
    """Drop expired events and return them."""
    expired = [e for e in engine.active_events if now >= e.expires_at]
    if expired:
        engine.active_events = [e for e in engine.active_events if now < e.expires_at]
    return expired


def get_active_events(engine: G._EventEngineState, now: float) -> List[G.BigEvent]:
    return [e for e in engine.active_events if now < e.expires_at]


def get_active_events_by_category(engine: G._EventEngineState, category: G.EventCategory,
                                  now: float) -> List[G.BigEvent]:
    return [e for e in get_active_events(engine, now) if e.category == category]


def get_most_severe_event(engine: G._EventEngineState, now: float) -> Optional[G.BigEvent]:
    active = get_active_events(engine, now)
    if not active:
        return None
    # max() keeps the first of equally severe events
    return max(active, key=lambda e: SEVERITY_RANK[e.severity])


def find_event(engine: G._EventEngineState, event_id: str) -> Optional[G.BigEvent]:
    return next((e for e in engine.active_events if e.id == event_id), None)


def current_event_volatility(engine: G._EventEngineState, now: float) -> float:
    return max((e.effects.market_volatility or 0.0 for e in get_active_events(engine, now)), default=0.0)
