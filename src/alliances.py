"""
Alliances (cartels): companies pool resources, build loyalty and sometimes
betray each other. Misuse of the membership rules raises ValueError.
"""
import logging
import math
import random
from typing import Dict, Mapping

import objects as G
from objects import clamp, get_instance_id

logger = logging.getLogger(__name__)

LEADER_BETRAYAL_RISK = 0.1
AI_BETRAYAL_RISK = 0.3
HUMAN_BETRAYAL_RISK = 0.2
AI_ACCEPT_CHANCE = 0.6
MAX_BETRAYAL_SHARE = 0.5


def create_alliance(leader_id: str, leader_name: str, name: str, now: float,
                    leader_is_ai: bool = False) -> G._Alliance:
    leader = G.AllianceMember(
        id=leader_id,
        name=leader_name,
        is_ai=leader_is_ai,
        joined_at=now,
        betrayal_risk=LEADER_BETRAYAL_RISK,
        loyalty=100,
    )
    alliance = G._Alliance(id=get_instance_id("alliance"), name=name, leader_id=leader_id,
                           members=[leader], created_at=now)
    logger.info("Alliance %s formed by %s", name, leader_name)
    return alliance


def _require_member(alliance: G._Alliance, member_id: str) -> G.AllianceMember:
    member = alliance.member(member_id)
    if member is None:
        raise ValueError(f"{member_id} is not a member of {alliance.name}")
    return member


def add_member(alliance: G._Alliance, member_id: str, name: str, is_ai: bool, now: float) -> G.AllianceMember:
    if alliance.member(member_id) is not None:
        raise ValueError(f"{member_id} is already a member of {alliance.name}")
    member = G.AllianceMember(
        id=member_id,
        name=name,
        is_ai=is_ai,
        joined_at=now,
        betrayal_risk=AI_BETRAYAL_RISK if is_ai else HUMAN_BETRAYAL_RISK,
    )
    alliance.members.append(member)
    return member


def remove_member(alliance: G._Alliance, member_id: str) -> G.AllianceMember:
    member = _require_member(alliance, member_id)
    alliance.members = [m for m in alliance.members if m.id != member_id]
    if alliance.leader_id == member_id and alliance.members:
        alliance.leader_id = alliance.members[0].id
    return member


def update_loyalty(alliance: G._Alliance, member_id: str, change: float) -> float:
    member = _require_member(alliance, member_id)
    member.loyalty = clamp(member.loyalty + change)
    return member.loyalty


def should_betray(alliance: G._Alliance, member_id: str, rng: random.Random) -> bool:
    member = _require_member(alliance, member_id)
    return rng.random() < member.betrayal_risk * (1 - member.loyalty / 100)


def contribute_resources(alliance: G._Alliance, member_id: str, resources: Mapping[str, float]) -> None:
    member = _require_member(alliance, member_id)
    for res, amount in resources.items():
        if amount <= 0:
            raise ValueError(f"Contribution of {res} must be positive")
    for res, amount in resources.items():
        alliance.shared_resources[res] = alliance.shared_resources.get(res, 0) + amount
        member.contribution += amount


def use_shared_resources(alliance: G._Alliance, resources: Mapping[str, float]) -> bool:
    """Draw from the pool; nothing is taken unless everything is available."""
    if any(alliance.shared_resources.get(res, 0) < amount for res, amount in resources.items()):
        return False
    for res, amount in resources.items():
        alliance.shared_resources[res] -= amount
    return True


def invite_to_alliance(alliance: G._Alliance, inviter_id: str, invitee_id: str, invitee_name: str,
                       invitee_is_ai: bool, now: float, rng: random.Random) -> bool:
    """Returns whether the invitee joined. AI companies accept 60% of the time."""
    _require_member(alliance, inviter_id)
    if alliance.member(invitee_id) is not None:
        raise ValueError(f"{invitee_id} is already a member of {alliance.name}")
    if invitee_is_ai and rng.random() >= AI_ACCEPT_CHANCE:
        return False
    add_member(alliance, invitee_id, invitee_name, invitee_is_ai, now)
    return True


def leave_alliance(alliance: G._Alliance, member_id: str) -> bool:
    """Returns True while the alliance still has members."""
    remove_member(alliance, member_id)
    return bool(alliance.members)


def betray_alliance(alliance: G._Alliance, member_id: str) -> Dict[str, float]:
    """Leave with a cut of every pooled resource proportional to what was put in."""
    member = _require_member(alliance, member_id)
    share = min(MAX_BETRAYAL_SHARE, member.contribution / 10_000)
    stolen = {}
    for res, amount in alliance.shared_resources.items():
        taken = math.floor(amount * share)
        if taken > 0:
            stolen[res] = taken
    for res, taken in stolen.items():
        alliance.shared_resources[res] -= taken
    remove_member(alliance, member_id)
    for other in alliance.members:
        other.loyalty = clamp(other.loyalty - 10)
    logger.info("%s betrayed %s", member.name, alliance.name)
    return stolen


def expel_from_alliance(alliance: G._Alliance, leader_id: str, member_id: str) -> G.AllianceMember:
    if alliance.leader_id != leader_id:
        raise ValueError(f"Only the leader of {alliance.name} can expel members")
    if member_id == leader_id:
        raise ValueError("The leader cannot expel themselves")
    return remove_member(alliance, member_id)


def alliance_strength(alliance: G._Alliance) -> float:
    if not alliance.members:
        return 0.0
    mean_loyalty = sum(m.loyalty for m in alliance.members) / len(alliance.members)
    return len(alliance.members) * mean_loyalty / 10
