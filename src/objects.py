from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
import itertools
import uuid

from pydantic import BaseModel, Field, NonNegativeFloat, PositiveFloat, field_validator

PLAYER_ID = "player"
MAX_ASSET_LEVEL = 5
_id_counter = itertools.count()

def get_instance_id(prefix: str) -> str:
    """Unique id that survives save/load (the counter alone would restart at 0)."""
    return f"{prefix}-{next(_id_counter)}-{uuid.uuid4().hex[:9]}"

def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))

# ────────────────────────────────────────────────────────────────────────────
# Enumerations
# ────────────────────────────────────────────────────────────────────────────

class GamePhase(str, Enum):
    CALM = "calm"
    SHOCK = "shock"
    REACTION = "reaction"
    RESOLUTION = "resolution"

class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3, Severity.CRITICAL: 4}

class EventCategory(str, Enum):
    MACRO = "macro"
    SECTORAL = "sectoral"
    POLITICAL = "political"
    CORPORATE = "corporate"
    ENVIRONMENTAL = "environmental"
    TECH = "tech"

class MarketCycle(str, Enum):
    BULL = "BULL"
    STABLE = "STABLE"
    BEAR = "BEAR"

class NewsCategory(str, Enum):
    HEADLINE = "headline"
    PLAYER_ACTION = "player_action"
    AI_ACTION = "ai_action"
    MARKET_SHIFT = "market_shift"
    CRISIS = "crisis"
    ALLIANCE = "alliance"
    BETRAYAL = "betrayal"
    TAKEOVER = "takeover"
    SCANDAL = "scandal"
    ACHIEVEMENT = "achievement"
    ANALYST = "analyst"
    RUMOR = "rumor"
    SENTIMENT = "sentiment"
    GOVERNMENT = "government"
    MEDIA = "media"
    AMBIENT = "ambient"

NewsSeverity = Literal["low", "medium", "high"]
Faction = Literal["pro_business", "populist", "green", "nationalist", "centrist"]
Frame = Literal["pro_business", "anti_corporate", "neutral", "crisis", "opportunity"]
DepartmentName = Literal["legal", "pr", "rnd", "logistics", "finance"]

# ────────────────────────────────────────────────────────────────────────────
# Catalog content (loaded from content/<Model>/*.json)
# ────────────────────────────────────────────────────────────────────────────

class Resource(BaseModel):
    id: str
    display_name: str
    base_price: PositiveFloat
    unit: str = "unit"  # e.g. "tons" for steel, "MWh" for energy

class AssetType(BaseModel):
    """Blueprint for a production asset at level 1."""

    id: str
    display_name: str
    build_cost: PositiveFloat
    upkeep_cost: NonNegativeFloat
    # Negative amounts are consumption (labor, energy); only positive output is sold
    production: Dict[str, float] = Field(default_factory=dict)
    industry: str

class Industry(BaseModel):
    id: str
    display_name: str
    description: str = ""
    base_yield: float = 0
    territory_multiplier: float = 1.0
    risk_level: Literal["low", "medium", "high"] = "medium"
    starting_assets: List[str] = Field(default_factory=lambda: ["factory"])

class Territory(BaseModel):
    id: str
    name: str
    base_yield: float
    resistance_score: int = Field(1, ge=1, le=5)
    claim_cost: PositiveFloat

class Personality(BaseModel):
    """Trait profile that weights the competitor AI's action families."""

    id: str
    display_name: str
    description: str = ""
    aggression: float = Field(..., ge=0, le=1)
    expansion_rate: float = Field(..., ge=0, le=1)
    risk_tolerance: float = Field(..., ge=0, le=1)
    market_manipulation: float = Field(..., ge=0, le=1)
    alliance_tendency: float = Field(..., ge=0, le=1)
    resource_focus: List[str] = Field(default_factory=list)

class PolicyEffect(BaseModel):
    tax_rate_change: float = 0  # percentage points
    antitrust_level: Optional[float] = None
    subsidy_amount: float = 0  # per company per tick
    regulation_strictness: float = 0
    blocks_mergers: bool = False

class PolicyDefinition(BaseModel):
    id: str
    type: Literal["tax_rate", "antitrust_enforcement", "subsidy_program", "regulation"]
    name: str
    description: str = ""
    target_industry: Optional[str] = None
    effect: PolicyEffect = Field(default_factory=PolicyEffect)

class MediaOutlet(BaseModel):
    id: str
    name: str
    type: Literal["tv_network", "newspaper", "social_platform", "news_aggregator", "podcast_network"]
    owner_id: Optional[str] = None
    influence: float = Field(..., ge=0, le=100)
    reach: int
    bias: Literal["pro_business", "neutral", "populist", "green", "nationalist"] = "neutral"
    price: PositiveFloat
    for_sale: bool = True

# ────────────────────────────────────────────────────────────────────────────
# Events
# ────────────────────────────────────────────────────────────────────────────

class IndustryImpact(BaseModel):
    revenue_multiplier: float = 1.0
    cost_multiplier: float = 1.0
    reputation_change: float = 0
    market_share_shift: float = 0

class GovernmentReaction(BaseModel):
    policy_changes: List[str] = Field(default_factory=list)
    investigation_targets: List[str] = Field(default_factory=list)
    # When set, the largest company of this industry is investigated
    investigate_industry: Optional[str] = None
    faction_shift: Optional[Faction] = None

class SentimentChanges(BaseModel):
    trust_in_corporations: float = 0
    anger_at_monopolies: float = 0
    environmental_concern: float = 0
    economic_optimism: float = 0

class MediaNarrative(BaseModel):
    frame: Frame
    outlets: List[str] = Field(default_factory=list)

class RetailInvestorReaction(BaseModel):
    risk_appetite_change: float = 0
    meme_stock_mania_change: float = 0
    industry_hype: Dict[str, float] = Field(default_factory=dict)

class EventEffects(BaseModel):
    asset_efficiency_changes: Dict[str, float] = Field(default_factory=dict)
    asset_upkeep_changes: Dict[str, float] = Field(default_factory=dict)
    resource_price_changes: Dict[str, float] = Field(default_factory=dict)
    market_volatility: Optional[float] = Field(None, ge=0, le=1)
    interest_rate_change: Optional[float] = None
    industry_impacts: Dict[str, IndustryImpact] = Field(default_factory=dict)
    government_reaction: Optional[GovernmentReaction] = None
    sentiment_changes: Optional[SentimentChanges] = None
    media_narratives: List[MediaNarrative] = Field(default_factory=list)
    retail_investor_reaction: Optional[RetailInvestorReaction] = None

class DecisionConsequences(BaseModel):
    reputation_change: float = 0
    cash_change: float = 0
    market_cap_change: float = 0
    unlocks: List[str] = Field(default_factory=list)

class EventDecision(BaseModel):
    id: str
    text: str
    cost: float = 0
    consequences: DecisionConsequences = Field(default_factory=DecisionConsequences)

class EventTemplate(BaseModel):
    """Catalog entry for a major event.

    `effects` holds the values used for low/medium severity; `severity_overrides`
    replaces individual entries for the harsher severities. Dict-valued fields
    are merged key by key, everything else is replaced wholesale.
    """

    id: str
    category: EventCategory
    title: str
    description: str
    base_duration_ms: PositiveFloat
    effects: EventEffects = Field(default_factory=EventEffects)
    severity_overrides: Dict[Severity, EventEffects] = Field(default_factory=dict)
    decisions: List[EventDecision] = Field(default_factory=list)

    def effects_for(self, severity: Severity) -> EventEffects:
        override = self.severity_overrides.get(severity)
        if override is None:
            return self.effects.model_copy(deep=True)
        merged = self.effects.model_dump()
        for key, value in override.model_dump(exclude_unset=True).items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return EventEffects.model_validate(merged)

class BigEvent(BaseModel):
    id: str
    type: str
    category: EventCategory
    severity: Severity
    title: str
    description: str
    effects: EventEffects
    duration_ms: float
    started_at: float
    expires_at: float
    decisions: List[EventDecision] = Field(default_factory=list)

class _EventEngineState(BaseModel):
    active_events: List[BigEvent] = Field(default_factory=list)
    last_event_time: float = 0
    event_cooldown_ms: float = 60_000
    event_probability: float = Field(0.15, ge=0, le=1)
    total_events_this_season: int = 0

# ────────────────────────────────────────────────────────────────────────────
# Market
# ────────────────────────────────────────────────────────────────────────────

class ResourcePrice(BaseModel):
    resource_type: str
    current_price: float
    base_price: PositiveFloat
    supply: NonNegativeFloat = 1000
    demand: NonNegativeFloat = 1000
    volatility: float = Field(0.1, ge=0, le=1)
    last_update: float = 0

class MarketManipulation(BaseModel):
    id: str
    company_id: str
    resource_type: str
    direction: Literal["up", "down"]
    strength: float = Field(..., ge=0, le=1)
    expires_at: float

    @property
    def factor(self) -> float:
        sign = 1 if self.direction == "up" else -1
        return 1 + sign * self.strength * 0.2

class _MarketState(BaseModel):
    prices: Dict[str, ResourcePrice] = Field(default_factory=dict)
    global_inflation: float = 1.0
    active_manipulations: List[MarketManipulation] = Field(default_factory=list)
    # Floor for every resource's volatility while a volatile event is active
    event_volatility: float = 0.0
    cycle: MarketCycle = MarketCycle.STABLE
    cycle_started_at: float = 0

# ────────────────────────────────────────────────────────────────────────────
# Assets & Companies
# ────────────────────────────────────────────────────────────────────────────

class _AssetInstance(BaseModel):
    """A built asset. Cost and output fields are cached from the catalog."""

    id: str
    type: str
    level: int = Field(1, ge=1, le=MAX_ASSET_LEVEL)
    build_cost: float
    upkeep_cost: float
    production_per_tick: Dict[str, float] = Field(default_factory=dict)
    industry: str
    efficiency_multiplier: NonNegativeFloat = 1.0
    built_at: float = 0

class _CompanyInstance(BaseModel):
    id: str
    name: str
    industry: str
    ceo_id: str
    is_player: bool = False

    cash: float = 100_000
    debt: NonNegativeFloat = 0
    interest_rate: float = 0.12  # annual

    # Equity: free_float + sum(shareholders) == total_shares
    total_shares: int = 1_000_000
    free_float: int = 300_000
    shareholders: Dict[str, int] = Field(default_factory=dict)
    share_price: float = 0.1
    market_cap: float = 100_000

    assets: List[str] = Field(default_factory=list)
    resources: Dict[str, float] = Field(default_factory=dict)

    reputation: float = Field(50, ge=0, le=100)
    lobbying_power: float = 10
    media_influence: float = 0
    market_share: Dict[str, float] = Field(default_factory=dict)
    production_capacity: float = 0

    is_subsidiary: bool = False
    parent_company_id: Optional[str] = None
    is_founder_emeritus: bool = False

    territories_owned: List[str] = Field(default_factory=list)
    departments: Dict[str, int] = Field(
        default_factory=lambda: {"legal": 1, "pr": 1, "rnd": 1, "logistics": 1, "finance": 1}
    )
    personality: Optional[str] = None
    alliance_id: Optional[str] = None
    last_revenue: float = 0

    @field_validator("reputation", mode="before")
    def _clamp_reputation(cls, v):  # noqa: N805 - pydantic validator signature
        return clamp(float(v))

# ────────────────────────────────────────────────────────────────────────────
# Government, media & public
# ────────────────────────────────────────────────────────────────────────────

class _Policy(BaseModel):
    id: str
    type: str
    name: str
    description: str = ""
    target_industry: Optional[str] = None
    effect: PolicyEffect = Field(default_factory=PolicyEffect)
    enacted_at: float
    expires_at: Optional[float] = None
    active: bool = True

class Investigation(BaseModel):
    id: str
    target_company_id: str
    type: Literal["antitrust", "fraud", "environmental", "labor"]
    severity: Literal["low", "medium", "high", "critical"]
    started_at: float
    progress: float = Field(0, ge=0, le=100)

class _GovernmentState(BaseModel):
    faction: Faction = "centrist"
    regulatory_stance: Literal["laissez_faire", "moderate", "strict"] = "moderate"
    tax_rate: float = Field(25, ge=0, le=50)
    antitrust_enforcement: float = Field(30, ge=0, le=100)
    active_policies: List[_Policy] = Field(default_factory=list)
    investigations: List[Investigation] = Field(default_factory=list)
    lobbying_influence: Dict[str, float] = Field(default_factory=dict)
    last_update: float = 0

class PRCampaign(BaseModel):
    id: str
    company_id: str
    type: Literal["reputation_boost", "damage_control", "stock_pump", "sentiment_shift", "greenwashing"]
    cost: float
    started_at: float
    expires_at: float
    reputation_change: float = 0
    stock_price_boost: float = 0
    public_trust_change: float = 0
    backfire_chance: float = Field(0, ge=0, le=1)
    backfired: bool = False

class NarrativeFrame(BaseModel):
    id: str
    event_id: str
    frame: Frame
    outlets: List[str] = Field(default_factory=list)
    public_impact: float = 0

class _MediaState(BaseModel):
    outlets: Dict[str, MediaOutlet] = Field(default_factory=dict)
    active_campaigns: List[PRCampaign] = Field(default_factory=list)
    narrative_frames: List[NarrativeFrame] = Field(default_factory=list)

class PublicSentiment(BaseModel):
    trust_in_corporations: float = 50
    anger_at_monopolies: float = 30
    environmental_concern: float = 40
    nationalism: float = 50
    economic_optimism: float = 60

class RetailInvestors(BaseModel):
    risk_appetite: float = 50
    meme_stock_mania: float = 20
    # industry -> enthusiasm (0-100); missing industries count as 50
    favorite_industries: Dict[str, float] = Field(default_factory=dict)

class _PeopleState(BaseModel):
    sentiment: PublicSentiment = Field(default_factory=PublicSentiment)
    retail_investors: RetailInvestors = Field(default_factory=RetailInvestors)

# ────────────────────────────────────────────────────────────────────────────
# News
# ────────────────────────────────────────────────────────────────────────────

class NewsItem(BaseModel):
    id: str = Field(default_factory=lambda: get_instance_id("news"))
    category: NewsCategory
    title: str
    content: str = ""
    timestamp: float
    severity: NewsSeverity = "low"
    related_ids: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

class _NewsFeed(BaseModel):
    items: List[NewsItem] = Field(default_factory=list)  # newest first
    max_items: int = 100
    last_ambient_at: float = 0
    ambient_interval_ms: float = 30_000

# ────────────────────────────────────────────────────────────────────────────
# Alliances
# ────────────────────────────────────────────────────────────────────────────

class AllianceMember(BaseModel):
    id: str
    name: str
    is_ai: bool
    joined_at: float
    contribution: float = 0
    betrayal_risk: float = Field(..., ge=0, le=1)
    loyalty: float = Field(50, ge=0, le=100)

class _Alliance(BaseModel):
    id: str
    name: str
    leader_id: str
    members: List[AllianceMember] = Field(default_factory=list)
    created_at: float
    shared_resources: Dict[str, float] = Field(default_factory=dict)

    def member(self, member_id: str) -> Optional[AllianceMember]:
        return next((m for m in self.members if m.id == member_id), None)

# ────────────────────────────────────────────────────────────────────────────
# Scoring
# ────────────────────────────────────────────────────────────────────────────

class NCPBreakdown(BaseModel):
    cash: float
    assets: float
    market_cap: float
    production: float
    market_share: float
    lobbying: float
    media: float
    alliance: float
    total: int

class RankingEntry(BaseModel):
    company_id: str
    name: str
    rank: int
    ncp: NCPBreakdown

    @property
    def total(self) -> int:
        return self.ncp.total

# ────────────────────────────────────────────────────────────────────────────
# World
# ────────────────────────────────────────────────────────────────────────────

class _WorldState(BaseModel):
    companies: Dict[str, _CompanyInstance] = Field(default_factory=dict)
    assets: Dict[str, _AssetInstance] = Field(default_factory=dict)
    market: _MarketState = Field(default_factory=_MarketState)
    events: _EventEngineState = Field(default_factory=_EventEngineState)
    government: _GovernmentState = Field(default_factory=_GovernmentState)
    media: _MediaState = Field(default_factory=_MediaState)
    people: _PeopleState = Field(default_factory=_PeopleState)
    news: _NewsFeed = Field(default_factory=_NewsFeed)
    alliances: Dict[str, _Alliance] = Field(default_factory=dict)
    # territory id -> owning company id (None while unclaimed)
    territories: Dict[str, Optional[str]] = Field(default_factory=dict)

    phase: GamePhase = GamePhase.CALM
    breaking_event_id: Optional[str] = None
    reaction_ticks_remaining: int = 0
    shock_ticks: int = 0
    resolution_started_at: Optional[float] = None
    player_action_points: int = 0

    distressed_companies: List[str] = Field(default_factory=list)
    company_distress_ticks: Dict[str, int] = Field(default_factory=dict)

    tick_count: int = 0
    season_start: float = 0
    season_end: float = 0
    season_ended: bool = False
    season_results: List[RankingEntry] = Field(default_factory=list)
    last_tick_at: Optional[float] = None

    # ── Helper methods -----------------------------------------------------
    def company_assets(self, company_id: str) -> List[_AssetInstance]:
        company = self.companies.get(company_id)
        if company is None:
            return []
        return [self.assets[a] for a in company.assets if a in self.assets]

    def asset_owner(self, asset_id: str) -> Optional[_CompanyInstance]:
        return next((c for c in self.companies.values() if asset_id in c.assets), None)

    def is_distressed(self, company_id: str) -> bool:
        return company_id in self.distressed_companies
