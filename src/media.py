"""Media outlets, PR campaigns and how events get framed."""
import logging
import random
from typing import Dict, Iterable, List, Literal, Optional

import objects as G
from objects import get_instance_id
from register import OutletDefs

logger = logging.getLogger(__name__)

CAMPAIGN_DURATION_MS = 60_000
MEDIA_INDUSTRY_BONUS = 1.5

# type -> (reputation, stock price boost, public trust, backfire chance) per 10,000 spent
_CAMPAIGN_PROFILES: Dict[str, tuple] = {
    "reputation_boost": (3.0, 0.0, 0.0, 0.10),
    "damage_control": (2.0, 0.0, 1.0, 0.05),
    "stock_pump": (0.0, 0.02, 0.0, 0.25),
    "sentiment_shift": (0.0, 0.0, 2.0, 0.15),
    "greenwashing": (2.0, 0.0, 1.0, 0.30),
}
CAMPAIGN_TYPES = tuple(_CAMPAIGN_PROFILES)
_FRAME_IMPACT = {"pro_business": 0.2, "anti_corporate": -0.3}

CampaignType = Literal["reputation_boost", "damage_control", "stock_pump", "sentiment_shift", "greenwashing"]


def create_media_state() -> G._MediaState:
    return G._MediaState(outlets={oid: outlet.model_copy() for oid, outlet in OutletDefs.items()})


def acquire_media_outlet(media: G._MediaState, outlet_id: str, buyer_id: str) -> Optional[G.MediaOutlet]:
    outlet = media.outlets.get(outlet_id)
    if outlet is None or not outlet.for_sale:
        return None
    outlet.owner_id = buyer_id
    outlet.for_sale = False
    return outlet


def get_company_media_influence(media: G._MediaState, company_id: str) -> float:
    return sum(o.influence for o in media.outlets.values() if o.owner_id == company_id)


def plan_pr_campaign(company: G._CompanyInstance, campaign_type: CampaignType,
                     cost: float, now: float) -> G.PRCampaign:
    """Size a campaign's effect by spend; media companies get more out of it."""
    reputation, boost, trust, backfire = _CAMPAIGN_PROFILES[campaign_type]
    scale = cost / 10_000
    if company.industry == "media":
        scale *= MEDIA_INDUSTRY_BONUS
    return G.PRCampaign(
        id=get_instance_id("campaign"),
        company_id=company.id,
        type=campaign_type,
        cost=cost,
        started_at=now,
        expires_at=now + CAMPAIGN_DURATION_MS,
        reputation_change=min(10.0, reputation * scale),
        stock_price_boost=min(0.2, boost * scale),
        public_trust_change=min(5.0, trust * scale),
        backfire_chance=backfire,
    )


def launch_pr_campaign(media: G._MediaState, campaign: G.PRCampaign) -> None:
    media.active_campaigns.append(campaign)


def check_campaign_backfire(campaign: G.PRCampaign, rng: random.Random) -> bool:
    if campaign.backfire_chance <= 0:
        return False
    return rng.random() < campaign.backfire_chance


def expire_campaigns(media: G._MediaState, now: float) -> List[G.PRCampaign]:
    expired = [c for c in media.active_campaigns if now >= c.expires_at]
    if expired:
        media.active_campaigns = [c for c in media.active_campaigns if now < c.expires_at]
    return expired


def frame_event(media: G._MediaState, event_id: str, frame: G.Frame, outlet_ids: List[str]) -> G.NarrativeFrame:
    narrative = G.NarrativeFrame(
        id=get_instance_id("frame"),
        event_id=event_id,
        frame=frame,
        outlets=list(outlet_ids),
        public_impact=_FRAME_IMPACT.get(frame, 0.0),
    )
    media.narrative_frames.append(narrative)
    logger.debug("Event %s framed as %s", event_id, frame)
    return narrative


def prune_narrative_frames(media: G._MediaState, active_event_ids: Iterable[str]) -> List[G.NarrativeFrame]:
    """Drop frames whose event is no longer running."""
    keep = set(active_event_ids)
    dropped = [f for f in media.narrative_frames if f.event_id not in keep]
    if dropped:
        media.narrative_frames = [f for f in media.narrative_frames if f.event_id in keep]
    return dropped
