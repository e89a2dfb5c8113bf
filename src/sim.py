import json
import logging
import random
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

import objects as G
import alliances
import departments
import events
import markets
import media
import news
import people
import politics
from actions import Toolset
from ai import run_asset_ai
from assets import migrate_legacy_asset, positive_output, refresh_production, create_asset
from companies import create_company, migrate_legacy_company, release_holdings, update_share_price
from competitors import run_competitor
from config import SimulationConfig, load_config
from objects import PLAYER_ID, GamePhase, clamp
from register import AssetTypeDefs, IndustryDefs, PersonalityDefs, TerritoryDefs
from scoring import compute_asset_values, compute_market_shares, compute_production_capacity, rank_companies_by_ncp

logger = logging.getLogger(__name__)

# Constants
WORLD_STATE_PATH = Path("world_state.json")
STORE_KEY = "oligarchy-world-storage"
MARKET_SHIFT_NEWS_THRESHOLD = 0.25
FALLBACK_STARTING_ASSETS = ["factory"]


class TickOutcome(str, Enum):
    CONTINUED = "continued"
    EVENT_FIRED = "event_fired"
    PHASE_ADVANCED = "phase_advanced"
    # a reaction tick that skipped bookkeeping and the season check
    REACTION_COUNTDOWN = "reaction_countdown"
    SEASON_ENDED = "season_ended"
    FROZEN = "frozen"


def wall_clock_ms() -> float:
    return time.time() * 1000


class SteppedClock:
    """Simulated clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, ms: float) -> None:
        self.value += ms

# -----------------------------------
# Tick pipeline
# -----------------------------------

class Behavior:
    """One stage of the tick. Returning a TickOutcome ends the tick early."""

    def tick(self, sim: "Simulation", now: float, rng: random.Random) -> Optional[TickOutcome]:
        raise NotImplementedError


class ProductionBehavior(Behavior):
    """Produce, auto-sell at market price, pay upkeep and interest, track distress."""

    def _cost_multiplier(self, sim: "Simulation", industry: str, now: float) -> float:
        multiplier = 1.0
        for event in events.get_active_events(sim.world.events, now):
            impact = event.effects.industry_impacts.get(industry)
            if impact is not None:
                multiplier *= impact.cost_multiplier
        return multiplier

    def _territory_income(self, sim: "Simulation", company: G._CompanyInstance) -> float:
        industry = IndustryDefs.get(company.industry)
        industry_mult = industry.territory_multiplier if industry else 1.0
        cycle_mult = markets.get_cycle_multiplier(sim.world.market.cycle)
        return sum(
            round(TerritoryDefs[t].base_yield * industry_mult * cycle_mult / 60)
            for t in company.territories_owned
            if t in TerritoryDefs
        )

    def tick(self, sim, now, rng):
        world = sim.world
        prices = markets.get_prices(world.market)
        ticks_per_year = sim.config.ticks_per_year
        produced: Dict[str, float] = {}

        for company in world.companies.values():
            revenue = 0.0
            upkeep = 0.0
            for asset in world.company_assets(company.id):
                for res, amount in positive_output(asset).items():
                    revenue += amount * prices.get(res, 0)
                    produced[res] = produced.get(res, 0) + amount
                upkeep += asset.upkeep_cost
            revenue *= departments.revenue_multiplier(company)
            upkeep *= departments.upkeep_multiplier(company) * self._cost_multiplier(sim, company.industry, now)
            interest = company.debt * company.interest_rate * departments.interest_multiplier(company) / ticks_per_year
            income = (revenue + self._territory_income(sim, company)
                      + politics.get_subsidy(world.government, company.industry))

            cash = company.cash + income - upkeep
            paid = min(interest, max(0.0, cash))
            company.debt += interest - paid
            company.cash = max(0.0, cash - paid)
            sim.tick_revenue[company.id] = revenue

            if company.cash <= 0 or company.debt > 2 * company.cash:
                if company.id not in world.distressed_companies:
                    world.distressed_companies.append(company.id)
                world.company_distress_ticks[company.id] = world.company_distress_ticks.get(company.id, 0) + 1
            elif company.id in world.distressed_companies:
                world.distressed_companies.remove(company.id)
                world.company_distress_ticks.pop(company.id, None)

        for res, amount in produced.items():
            markets.update_supply_demand(world.market, res, amount, 0)
        return None


class MarketBehavior(Behavior):
    """Expire transient state, advance the market cycle and reprice."""

    def tick(self, sim, now, rng):
        world = sim.world
        for event in events.update_event_engine(world.events, now):
            logger.info("Event expired: %s", event.title)
        markets.clean_expired_manipulations(world.market, now)
        media.expire_campaigns(world.media, now)
        media.prune_narrative_frames(world.media, (e.id for e in world.events.active_events))
        politics.expire_policies(world.government, now)
        world.market.event_volatility = events.current_event_volatility(world.events, now)
        if markets.update_market_cycle(world.market, now, sim.config.market_cycle_ms):
            logger.info("Market cycle turned %s", world.market.cycle.value)

        before = {res: entry.current_price for res, entry in world.market.prices.items()}
        markets.update_prices(world.market, now, rng)
        for res, old in before.items():
            new = world.market.prices[res].current_price
            if old and abs(new - old) / old > MARKET_SHIFT_NEWS_THRESHOLD:
                news.add_news_item(world.news, news.market_shift_news(res, old, new, now))
        return None


class EventBehavior(Behavior):
    """Maybe fire a major event while the world is calm or resolving."""

    def tick(self, sim, now, rng):
        world = sim.world
        if world.phase not in (GamePhase.CALM, GamePhase.RESOLUTION):
            return None
        if not events.should_trigger(world.events, now, rng):
            return None
        event = events.trigger_random_event(world.events, now, rng)
        if event is None:
            return None
        self.apply_effects(sim, event, now, rng)
        news.add_news_item(world.news, news.crisis_news(event, now))
        sim.enter_shock_phase(event)
        return TickOutcome.EVENT_FIRED

    def apply_effects(self, sim: "Simulation", event: G.BigEvent, now: float, rng: random.Random) -> None:
        world = sim.world
        effects = event.effects

        for company in world.companies.values():
            impact = effects.industry_impacts.get(company.industry)
            if impact is None:
                continue
            update_share_price(company, rng, revenue_change=impact.revenue_multiplier - 1,
                               event_impact=impact.reputation_change / 100)
            change = departments.shield_reputation_hit(company, impact.reputation_change)
            company.reputation = clamp(company.reputation + change)

        for asset in world.assets.values():
            efficiency = effects.asset_efficiency_changes.get(asset.type)
            if efficiency:
                asset.efficiency_multiplier *= efficiency
                refresh_production(asset)
            upkeep = effects.asset_upkeep_changes.get(asset.type)
            if upkeep:
                asset.upkeep_cost = round(asset.upkeep_cost * upkeep)

        if effects.interest_rate_change:
            for company in world.companies.values():
                company.interest_rate *= effects.interest_rate_change

        for res, change in effects.resource_price_changes.items():
            if change:
                markets.update_supply_demand(world.market, res, 0, 1000 if change > 0 else -1000)

        world.market.event_volatility = events.current_event_volatility(world.events, now)

        if effects.government_reaction is not None:
            self._apply_government_reaction(sim, event, effects.government_reaction, now)

        if effects.sentiment_changes is not None:
            s = effects.sentiment_changes
            people.update_sentiment(world.people, people.SentimentFactors(
                corporate_scandal=s.trust_in_corporations < 0,
                monopoly_reveal=s.anger_at_monopolies > 0,
                environmental_disaster=s.environmental_concern > 0,
                economic_boom=s.trust_in_corporations > 0 or s.economic_optimism > 0,
                economic_crisis=s.economic_optimism < 0,
            ))

        if effects.retail_investor_reaction is not None:
            r = effects.retail_investor_reaction
            people.update_retail_investors(world.people, people.InvestorFactors(
                market_crash=r.risk_appetite_change < 0,
                market_boom=r.risk_appetite_change > 0,
                meme_stock_event=r.meme_stock_mania_change > 0,
                hyped_industries=[ind for ind, hype in r.industry_hype.items() if hype > 0],
            ))
            for industry, hype in r.industry_hype.items():
                if hype < 0:
                    people.adjust_industry_enthusiasm(world.people, industry, hype)

        if effects.media_narratives:
            narrative = effects.media_narratives[0]
            framed = media.frame_event(world.media, event.id, narrative.frame, narrative.outlets)
            people.adjust_trust(world.people, round(framed.public_impact * 10))

    def _apply_government_reaction(self, sim: "Simulation", event: G.BigEvent,
                                   reaction: G.GovernmentReaction, now: float) -> None:
        world = sim.world
        government = world.government
        if reaction.faction_shift:
            government.faction = reaction.faction_shift
        for policy_id in reaction.policy_changes:
            policy = politics.policy_from_definition(policy_id, now, expires_at=event.expires_at)
            if policy is None:
                logger.warning("Event %s references unknown policy %s", event.type, policy_id)
                continue
            politics.enact_policy(government, policy, now)
            news.add_news_item(world.news, news.government_news(f"Government enacts {policy.name}",
                                                                policy.description, now))
        targets = [t for t in reaction.investigation_targets if t in world.companies]
        if reaction.investigate_industry:
            in_industry = [c for c in world.companies.values() if c.industry == reaction.investigate_industry]
            if in_industry:
                targets.append(max(in_industry, key=lambda c: c.market_cap).id)
        for target_id in dict.fromkeys(targets):
            politics.start_investigation(government, target_id, "antitrust", "medium", now)
            news.add_news_item(world.news, news.government_news(
                f"Regulators open probe into {world.companies[target_id].name}",
                "An antitrust investigation is under way.", now, related_ids=[target_id]))


class AIBehavior(Behavior):
    """A single gate decides whether every AI company acts this tick."""

    def tick(self, sim, now, rng):
        world = sim.world
        if rng.random() >= sim.config.ai_action_probability:
            return None
        for company in [c for c in world.companies.values() if not c.is_player]:
            if company.id not in world.companies:
                continue
            if sim.config.ai_strategy == "personality":
                run_competitor(sim.tools, company, rng, sim.config.competitor_second_best_chance)
            else:
                run_asset_ai(sim.tools, company, rng)
        if world.alliances:
            self._betrayals(sim, rng)
        return None

    def _betrayals(self, sim: "Simulation", rng: random.Random) -> None:
        for alliance in list(sim.world.alliances.values()):
            for member in list(alliance.members):
                if member.is_ai and alliances.should_betray(alliance, member.id, rng):
                    sim.tools.betray_alliance(member.id)
                    break


class PhaseTimerBehavior(Behavior):
    """Shock timeout, reaction countdown and the resolution delay."""

    def tick(self, sim, now, rng):
        world = sim.world
        if world.phase == GamePhase.SHOCK:
            world.shock_ticks += 1
            if world.shock_ticks >= sim.config.shock_timeout_ticks:
                logger.info("Shock acknowledged automatically after %d ticks", world.shock_ticks)
                sim.enter_reaction_phase()
                return TickOutcome.PHASE_ADVANCED
        elif world.phase == GamePhase.REACTION:
            world.reaction_ticks_remaining = max(0, world.reaction_ticks_remaining - 1)
            if world.reaction_ticks_remaining == 0:
                sim.enter_resolution_phase(now)
                return TickOutcome.PHASE_ADVANCED
            return TickOutcome.REACTION_COUNTDOWN
        elif world.phase == GamePhase.RESOLUTION:
            started = world.resolution_started_at if world.resolution_started_at is not None else now
            if now - started >= sim.config.resolution_delay_ms:
                sim.enter_calm_phase()
        return None


class BookkeepingBehavior(Behavior):
    """Reputation drift, tax, share prices, investigations, bankruptcies and news."""

    def tick(self, sim, now, rng):
        world = sim.world
        sentiment_score = people.get_sentiment_score(world.people)
        trend = markets.get_market_trend(world.market.cycle)
        reprice = world.tick_count % sim.config.share_price_update_interval_ticks == 0

        for company in world.companies.values():
            drift = people.get_sentiment_reputation_impact(world.people, company.industry)
            company.reputation = clamp(company.reputation + drift)

            revenue = sim.tick_revenue.get(company.id, 0.0)
            rate = politics.get_effective_tax_rate(world.government, company.lobbying_power)
            company.cash = max(0.0, company.cash - revenue * rate / 100)

            if reprice:
                change = (revenue - company.last_revenue) / company.last_revenue if company.last_revenue > 0 else 0.0
                update_share_price(company, rng, revenue_change=max(-1.0, min(1.0, change)),
                                   sentiment_impact=sentiment_score, market_trend=trend)
                company.last_revenue = revenue

        for investigation in politics.advance_investigations(world.government):
            target = world.companies.get(investigation.target_company_id)
            if target is None:
                continue
            penalty = politics.INVESTIGATION_REPUTATION_PENALTY[investigation.severity]
            target.reputation = clamp(target.reputation + departments.shield_reputation_hit(target, -penalty))
            news.add_news_item(world.news, news.government_news(
                f"Investigation into {target.name} concludes",
                f"Regulators found wrongdoing at {target.name}.", now, related_ids=[target.id]))

        for company_id in list(world.companies):
            company = world.companies[company_id]
            if company.is_player:
                continue
            if world.company_distress_ticks.get(company_id, 0) >= sim.config.distress_bankruptcy_ticks:
                sim.remove_company(company_id, now)

        news.ensure_not_empty(world.news, list(world.companies.values()), trend,
                              now - world.events.last_event_time, now, rng)
        return None


class SeasonEndBehavior(Behavior):
    """Refresh standings; freeze the world once the season clock runs out."""

    def tick(self, sim, now, rng):
        world = sim.world
        shares = compute_market_shares(world, now)
        for company in world.companies.values():
            company.market_share = shares.get(company.id, {})
            company.production_capacity = compute_production_capacity(world, company.id)
        if now < world.season_end or world.season_ended:
            return None
        world.season_results = sim.leaderboard()
        world.season_ended = True
        winner = world.season_results[0].name if world.season_results else "nobody"
        news.add_news_item(world.news, G.NewsItem(
            category=G.NewsCategory.HEADLINE, title="Season Over", content=f"{winner} tops the rankings.",
            timestamp=now, severity="high"))
        logger.info("Season ended after %d ticks, winner %s", world.tick_count, winner)
        return TickOutcome.SEASON_ENDED


def default_behaviors() -> List[Behavior]:
    return [
        ProductionBehavior(),
        MarketBehavior(),
        EventBehavior(),
        AIBehavior(),
        PhaseTimerBehavior(),
        BookkeepingBehavior(),
        SeasonEndBehavior(),
    ]

# -----------------------------------
# Simulation
# -----------------------------------

class Simulation:
    """Owns the world, the random source and the clock; every mutation runs under `lock`."""

    def __init__(self, config: Optional[SimulationConfig] = None, seed: int = 0,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config or SimulationConfig()
        self.random = random.Random(seed)
        self.clock = clock or wall_clock_ms
        self.lock = threading.RLock()
        self.behaviors = default_behaviors()
        self.tick_revenue: Dict[str, float] = {}
        self._attach(G._WorldState())

    def _attach(self, world: G._WorldState) -> None:
        self.world = world
        self.tools = Toolset(world, self.now, self.config, self.random)

    def now(self) -> float:
        return self.clock()

    # ---- Setup ----
    def initialize_world(self, industry: str = "tech", player_name: str = "Player") -> G._WorldState:
        with self.lock:
            now = self.now()
            cfg = self.config
            world = G._WorldState(
                market=markets.create_market_state(now),
                events=events.create_event_engine(now, cfg.event_cooldown_ms, cfg.event_probability),
                government=politics.create_government_state(now),
                media=media.create_media_state(),
                people=people.create_people_state(),
                news=news.create_news_feed(cfg.news_feed_size, cfg.ambient_news_interval_ms),
                territories={t: None for t in sorted(TerritoryDefs)},
                season_start=now,
                season_end=now + cfg.season_duration_ms,
                last_tick_at=now,
            )
            world.news.last_ambient_at = now
            player = create_company(PLAYER_ID, player_name, industry, PLAYER_ID, True, cfg.starting_cash)
            world.companies[player.id] = player

            industry_ids = sorted(IndustryDefs)
            personality_ids = sorted(PersonalityDefs)
            for i in range(cfg.ai_company_count):
                company_id = f"ai-{i}"
                company = create_company(company_id, f"Corp {chr(65 + i)}", self.random.choice(industry_ids),
                                         company_id, False, cfg.starting_cash)
                if personality_ids:
                    company.personality = self.random.choice(personality_ids)
                world.companies[company_id] = company

            for company in world.companies.values():
                definition = IndustryDefs.get(company.industry)
                starting = definition.starting_assets if definition else FALLBACK_STARTING_ASSETS
                for asset_type in starting:
                    if asset_type not in AssetTypeDefs:
                        logger.warning("Unknown starting asset %s for %s", asset_type, company.industry)
                        continue
                    asset = create_asset(asset_type, company.id, now=now)
                    world.assets[asset.id] = asset
                    company.assets.append(asset.id)

            news.add_news_item(world.news, G.NewsItem(
                category=G.NewsCategory.HEADLINE, title="A New Season Begins",
                content=f"{len(world.companies)} companies compete for dominance.", timestamp=now))
            self._attach(world)
            logger.info("World initialized: %d companies, %d assets", len(world.companies), len(world.assets))
            return world

    # ---- Phase machine ----
    def enter_shock_phase(self, event: G.BigEvent) -> bool:
        world = self.world
        if world.phase not in (GamePhase.CALM, GamePhase.RESOLUTION):
            return False
        world.phase = GamePhase.SHOCK
        world.breaking_event_id = event.id
        world.reaction_ticks_remaining = self.config.reaction_window_ticks
        world.player_action_points = self.config.max_action_points
        world.shock_ticks = 0
        world.resolution_started_at = None
        logger.info("Phase -> shock (%s)", event.title)
        return True

    def enter_reaction_phase(self) -> bool:
        world = self.world
        if world.phase != GamePhase.SHOCK:
            return False
        world.phase = GamePhase.REACTION
        world.breaking_event_id = None
        logger.info("Phase -> reaction (%d ticks)", world.reaction_ticks_remaining)
        return True

    def enter_resolution_phase(self, now: Optional[float] = None) -> bool:
        world = self.world
        if world.phase != GamePhase.REACTION:
            return False
        world.phase = GamePhase.RESOLUTION
        world.reaction_ticks_remaining = 0
        world.player_action_points = 0
        world.resolution_started_at = self.now() if now is None else now
        logger.info("Phase -> resolution")
        return True

    def enter_calm_phase(self) -> bool:
        world = self.world
        if world.phase != GamePhase.RESOLUTION:
            return False
        world.phase = GamePhase.CALM
        world.resolution_started_at = None
        logger.info("Phase -> calm")
        return True

    # ---- Tick ----
    def tick(self) -> TickOutcome:
        with self.lock:
            world = self.world
            if world.season_ended:
                return TickOutcome.FROZEN
            now = self.now()
            world.tick_count += 1
            self.tick_revenue = {}
            outcome = None
            for behavior in self.behaviors:
                outcome = behavior.tick(self, now, self.random)
                if outcome is not None:
                    break
            world.last_tick_at = now
            return outcome or TickOutcome.CONTINUED

    def remove_company(self, company_id: str, now: float) -> None:
        """Liquidate a bankrupt AI company and release everything it held."""
        world = self.world
        company = world.companies.pop(company_id)
        for asset_id in company.assets:
            world.assets.pop(asset_id, None)
        for other in world.companies.values():
            release_holdings(other, company_id)
            if other.parent_company_id == company_id:
                other.parent_company_id = None
                other.is_subsidiary = False
        for territory_id in company.territories_owned:
            world.territories[territory_id] = None
        for outlet in world.media.outlets.values():
            if outlet.owner_id == company_id:
                outlet.owner_id = None
                outlet.for_sale = True
        alliance = world.alliances.get(company.alliance_id) if company.alliance_id else None
        if alliance is not None and alliance.member(company_id) is not None:
            if not alliances.leave_alliance(alliance, company_id):
                del world.alliances[alliance.id]
        if company_id in world.distressed_companies:
            world.distressed_companies.remove(company_id)
        world.company_distress_ticks.pop(company_id, None)
        news.add_news_item(world.news, news.bankruptcy_news(company, now))
        logger.info("%s went bankrupt", company.name)

    # ---- Player actions ----
    def _act(self, action: Callable[[], bool]) -> bool:
        with self.lock:
            if self.world.season_ended:
                return False
            return action()

    def _gated(self, action: Callable[[], bool]) -> bool:
        """Run an action that costs an action point while the player is reacting."""
        with self.lock:
            world = self.world
            if world.season_ended:
                return False
            reacting = world.phase == GamePhase.REACTION
            if reacting and world.player_action_points <= 0:
                return False
            ok = action()
            if ok and reacting:
                world.player_action_points -= 1
            return ok

    def build_asset(self, asset_type: str, level: int = 1) -> bool:
        return self._act(lambda: self.tools.build_asset(PLAYER_ID, asset_type, level))

    def upgrade_asset(self, asset_id: str) -> bool:
        return self._act(lambda: self.tools.upgrade_asset(PLAYER_ID, asset_id))

    def shutdown_asset(self, asset_id: str) -> bool:
        return self._act(lambda: self.tools.shutdown_asset(PLAYER_ID, asset_id))

    def take_loan(self, amount: float) -> bool:
        return self._act(lambda: self.tools.take_loan(PLAYER_ID, amount))

    def repay_loan(self, amount: float) -> bool:
        return self._act(lambda: self.tools.repay_loan(PLAYER_ID, amount))

    def buy_shares(self, target_id: str, amount: int) -> bool:
        return self._gated(lambda: self.tools.buy_shares(PLAYER_ID, target_id, amount))

    def sell_shares(self, target_id: str, amount: int) -> bool:
        return self._gated(lambda: self.tools.sell_shares(PLAYER_ID, target_id, amount))

    def buyout_cost(self, target_id: str) -> float:
        with self.lock:
            return self.tools.buyout_cost(target_id)

    def attempt_buyout(self, target_id: str) -> bool:
        return self._gated(lambda: self.tools.attempt_buyout(PLAYER_ID, target_id))

    def trade_resource(self, resource_type: str, amount: float, target_id: Optional[str] = None) -> bool:
        return self._gated(lambda: self.tools.trade_resource(PLAYER_ID, resource_type, amount, target_id))

    def buy_resource(self, resource_type: str, amount: float) -> bool:
        return self._gated(lambda: self.tools.buy_resource(PLAYER_ID, resource_type, amount))

    def manipulate_market(self, resource_type: str, direction: Literal["up", "down"], strength: float) -> bool:
        return self._gated(lambda: self.tools.manipulate_market(PLAYER_ID, resource_type, direction, strength))

    def launch_pr_campaign(self, campaign_type: media.CampaignType, cost: float) -> bool:
        return self._gated(lambda: self.tools.launch_pr_campaign(PLAYER_ID, campaign_type, cost))

    def lobby(self, amount: float) -> bool:
        return self._gated(lambda: self.tools.lobby(PLAYER_ID, amount))

    def upgrade_department(self, department: str) -> bool:
        return self._act(lambda: self.tools.upgrade_department(PLAYER_ID, department))

    def claim_territory(self, territory_id: str) -> bool:
        return self._act(lambda: self.tools.claim_territory(PLAYER_ID, territory_id))

    def acquire_media_outlet(self, outlet_id: str) -> bool:
        return self._act(lambda: self.tools.acquire_media_outlet(PLAYER_ID, outlet_id))

    def form_alliance(self, name: str) -> bool:
        return self._act(lambda: self.tools.form_alliance(PLAYER_ID, name))

    def invite_to_alliance(self, company_id: str) -> bool:
        return self._act(lambda: self.tools.invite_to_alliance(PLAYER_ID, company_id))

    def leave_alliance(self) -> bool:
        return self._act(lambda: self.tools.leave_alliance(PLAYER_ID))

    def betray_alliance(self) -> bool:
        return self._act(lambda: self.tools.betray_alliance(PLAYER_ID))

    def expel_from_alliance(self, member_id: str) -> bool:
        return self._act(lambda: self.tools.expel_from_alliance(PLAYER_ID, member_id))

    def contribute_to_alliance(self, resources: Mapping[str, float]) -> bool:
        return self._act(lambda: self.tools.contribute_to_alliance(PLAYER_ID, resources))

    def respond_to_event_choice(self, event_id: str, choice_id: str) -> bool:
        """Take one of the breaking event's decisions; this also ends the shock."""
        with self.lock:
            world = self.world
            player = world.companies.get(PLAYER_ID)
            if player is None or world.season_ended or world.phase != GamePhase.SHOCK:
                return False
            if event_id != world.breaking_event_id:
                return False
            event = events.find_event(world.events, event_id)
            decision = next((d for d in event.decisions if d.id == choice_id), None) if event else None
            if decision is None or player.cash < decision.cost:
                return False
            consequences = decision.consequences
            # cost only gates the choice; cash_change carries the actual spend
            player.cash = max(0.0, player.cash + consequences.cash_change)
            change = departments.shield_reputation_hit(player, consequences.reputation_change)
            player.reputation = clamp(player.reputation + change)
            if consequences.market_cap_change:
                player.market_cap = max(0.0, player.market_cap + consequences.market_cap_change)
                player.share_price = player.market_cap / player.total_shares
            news.add_news_item(world.news, news.player_action_news(
                f"Responds to {event.title}", decision.text, self.now()))
            return self.enter_reaction_phase()

    def dismiss_breaking_event(self) -> bool:
        with self.lock:
            return self.enter_reaction_phase()

    # ---- Read API ----
    @property
    def player(self) -> Optional[G._CompanyInstance]:
        return self.world.companies.get(PLAYER_ID)

    @property
    def ai_companies(self) -> List[G._CompanyInstance]:
        return [c for c in self.world.companies.values() if not c.is_player]

    def alliance_strengths(self) -> Dict[str, float]:
        strengths = {}
        for company in self.world.companies.values():
            alliance = self.world.alliances.get(company.alliance_id) if company.alliance_id else None
            strengths[company.id] = alliances.alliance_strength(alliance) if alliance else 0.0
        return strengths

    def leaderboard(self) -> List[G.RankingEntry]:
        with self.lock:
            world = self.world
            return rank_companies_by_ncp(
                world.companies.values(),
                compute_asset_values(world),
                compute_market_shares(world, self.now()),
                self.alliance_strengths(),
            )

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return self.world.model_dump(mode="json")

    def restore(self, data: Mapping[str, Any]) -> None:
        """Replace the world with a snapshot, upgrading legacy records first."""
        data = dict(data)
        data["assets"] = {k: migrate_legacy_asset(v) for k, v in (data.get("assets") or {}).items()}
        data["companies"] = {k: migrate_legacy_company(v) for k, v in (data.get("companies") or {}).items()}
        with self.lock:
            self._attach(G._WorldState.model_validate(data))

# -----------------------------------
# Persistence
# -----------------------------------

def save_world(sim: Simulation, path: Path = WORLD_STATE_PATH) -> None:
    Path(path).write_text(json.dumps({STORE_KEY: sim.snapshot()}), encoding="utf-8")


def load_world(path: Path = WORLD_STATE_PATH, config: Optional[SimulationConfig] = None, seed: int = 0,
               clock: Optional[Callable[[], float]] = None) -> Simulation:
    """Restore a saved simulation, or start a fresh season when there is nothing to restore."""
    sim = Simulation(config, seed, clock)
    path = Path(path)
    raw = path.read_text(encoding="utf-8") if path.exists() else ""
    stored = json.loads(raw).get(STORE_KEY) if raw.strip() else None
    if stored:
        sim.restore(stored)
        logger.info("Restored world from %s at tick %d", path, sim.world.tick_count)
    else:
        sim.initialize_world()
    return sim

# -----------------------------------
# Main Simulation Loop
# -----------------------------------

def main(ticks: int = 1, seed: int = 0, state_path: Path = WORLD_STATE_PATH,
         config_path: Optional[Path] = None) -> Simulation:
    """Run the simulation headless for a number of ticks, one simulated tick interval apiece."""
    config = load_config(config_path)
    clock = SteppedClock()
    sim = load_world(state_path, config, seed, clock)
    clock.value = sim.world.last_tick_at or sim.world.season_start

    for _ in range(ticks):
        clock.advance(config.tick_interval_ms)
        if sim.tick() == TickOutcome.FROZEN:
            break
    save_world(sim, state_path)

    world = sim.world
    print(f"Tick {world.tick_count} | phase {world.phase.value} | season ended: {world.season_ended}")
    for entry in sim.leaderboard():
        company = world.companies[entry.company_id]
        print(f"{entry.rank:>2}. {entry.name:<12} NCP {entry.total:>8,}  cash {company.cash:>12,.0f}")
    for item in news.get_headlines(world.news):
        print(f"  * {item.title}")
    return sim

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run the oligarchy simulation headless")
    parser.add_argument("--ticks", type=int, default=10, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=0, help="RNG seed for deterministic runs")
    parser.add_argument("--state", type=Path, default=WORLD_STATE_PATH, help="World snapshot file")
    parser.add_argument("--config", type=Path, default=None, help="JSON file overriding SimulationConfig")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    main(ticks=args.ticks, seed=args.seed, state_path=args.state, config_path=args.config)
