import sys
from pathlib import Path
import random

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import ai  # type: ignore
import competitors  # type: ignore
import markets  # type: ignore
import objects as G  # type: ignore
from actions import Toolset  # type: ignore
from assets import create_asset  # type: ignore
from companies import create_company  # type: ignore
from config import SimulationConfig  # type: ignore
from register import PersonalityDefs, TerritoryDefs  # type: ignore

BASE_PRICES = {"chips": 1200, "data": 2000, "fuel": 800, "grain": 300,
               "steel": 500, "media_impressions": 100, "labor": 50, "energy": 150}


class Fixed(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def make_world():
    world = G._WorldState(market=markets.create_market_state(0),
                          territories={t: None for t in sorted(TerritoryDefs)})
    world.companies[G.PLAYER_ID] = create_company(G.PLAYER_ID, "Player", "tech", G.PLAYER_ID, is_player=True)
    world.companies["ai-0"] = create_company("ai-0", "Corp A", "energy", "ai-0")
    return world


def give_asset(world, company_id, asset_type):
    asset = create_asset(asset_type, company_id)
    world.assets[asset.id] = asset
    world.companies[company_id].assets.append(asset.id)
    return asset


def toolset(world):
    return Toolset(world, lambda: 0, SimulationConfig(), random.Random(0))

# -----------------------------------
# Asset AI
# -----------------------------------

def test_best_roi_build_wins():
    c = create_company("ai-0", "Corp A", "energy", "ai-0")
    decision = ai.decide_ai_action(c, [], BASE_PRICES)
    assert decision.action == "build"
    assert decision.asset_type == "data_center"


def test_only_affordable_types_considered():
    c = create_company("ai-0", "Corp A", "energy", "ai-0", starting_cash=45_000)
    decisions = ai.candidate_decisions(c, [], BASE_PRICES)
    assert {d.asset_type for d in decisions if d.action == "build"} == {"farm", "mine"}
    assert decisions[0].asset_type == "mine"


def test_low_cash_company_with_assets_borrows():
    world = make_world()
    c = world.companies["ai-0"]
    c.cash = 10_000
    give_asset(world, "ai-0", "factory")
    decision = ai.decide_ai_action(c, world.company_assets("ai-0"), BASE_PRICES)
    assert decision.action == "loan"
    assert decision.amount == 20_000


def test_upgrade_needs_ten_percent_roi():
    world = make_world()
    c = world.companies["ai-0"]
    c.cash = 26_000
    asset = give_asset(world, "ai-0", "factory")
    decisions = ai.candidate_decisions(c, [asset], BASE_PRICES)
    upgrade = next(d for d in decisions if d.action == "upgrade")
    assert abs(upgrade.priority - 0.3 * 22_000 / 25_000) < 1e-9
    weak_prices = dict(BASE_PRICES, chips=200)
    assert not any(d.action == "upgrade" for d in ai.candidate_decisions(c, [asset], weak_prices))


def test_losing_asset_is_shut_down():
    world = make_world()
    c = world.companies["ai-0"]
    c.cash = 0
    asset = give_asset(world, "ai-0", "factory")
    decision = ai.decide_ai_action(c, [asset], {})
    assert decision.action == "shutdown"
    assert decision.asset_id == asset.id


def test_idle_always_available():
    c = create_company("ai-0", "Corp A", "energy", "ai-0", starting_cash=0)
    decisions = ai.candidate_decisions(c, [], BASE_PRICES)
    assert [d.action for d in decisions] == ["idle"]


def test_select_decision_second_best():
    decisions = [ai.AIDecision(action="build", priority=1), ai.AIDecision(action="idle", priority=0.1)]
    assert ai.select_decision(decisions, Fixed(0.0)).action == "build"
    assert ai.select_decision(decisions, Fixed(0.1), 0.2).action == "idle"
    assert ai.select_decision(decisions, Fixed(0.2), 0.2).action == "build"


def test_run_asset_ai_builds_through_toolset():
    world = make_world()
    tools = toolset(world)
    decision = ai.run_asset_ai(tools, world.companies["ai-0"], random.Random(0))
    assert decision.action == "build"
    company = world.companies["ai-0"]
    assert company.cash == 0
    assert world.assets[company.assets[0]].type == "data_center"

# -----------------------------------
# Personality AI
# -----------------------------------

def test_visionary_expands():
    c = create_company("ai-0", "Corp A", "tech", "ai-0")
    decision = competitors.calculate_ai_decision(
        c, PersonalityDefs["visionary"], 100_000, 0, 12, G.MarketCycle.STABLE, Fixed(0.99), 0)
    assert decision.action == "expand"


def test_shark_sabotages_strong_player():
    c = create_company("ai-0", "Corp A", "tech", "ai-0")
    decision = competitors.calculate_ai_decision(
        c, PersonalityDefs["shark"], 1_000_000, 1000, 0, G.MarketCycle.STABLE, Fixed(0.99), 0)
    assert decision.action == "sabotage"


def test_baron_manipulates_in_bear_market():
    c = create_company("ai-0", "Corp A", "energy", "ai-0")
    decision = competitors.calculate_ai_decision(
        c, PersonalityDefs["baron"], 0, 0, 0, G.MarketCycle.BEAR, Fixed(0.99), 0)
    assert decision.action == "manipulate"
    assert decision.resource_type == "steel"


def test_second_best_pick():
    c = create_company("ai-0", "Corp A", "tech", "ai-0")
    decision = competitors.calculate_ai_decision(
        c, PersonalityDefs["visionary"], 100_000, 0, 12, G.MarketCycle.STABLE, Fixed(0.0), 1.0)
    assert decision.action == "build"


def test_best_asset_follows_focus():
    assert competitors.best_asset_for(PersonalityDefs["visionary"], 100_000) == "data_center"
    assert competitors.best_asset_for(PersonalityDefs["visionary"], 60_000) == "factory"
    assert competitors.best_asset_for(PersonalityDefs["ghost"], 100_000) == competitors.FALLBACK_ASSET


def test_competitor_expansion_claims_cheapest_territory():
    world = make_world()
    world.companies["ai-0"].personality = "visionary"
    tools = toolset(world)
    expected = min(TerritoryDefs, key=lambda t: TerritoryDefs[t].claim_cost)
    decision = competitors.run_competitor(tools, world.companies["ai-0"], Fixed(0.99), 0)
    assert decision.action == "expand"
    assert world.territories[expected] == "ai-0"
    assert expected in world.companies["ai-0"].territories_owned


def test_competitor_sabotage_hurts_player():
    world = make_world()
    tools = toolset(world)
    decision = ai.AIDecision(action="sabotage", priority=1)
    assert competitors.execute_competitor_decision(tools, "ai-0", decision)
    assert world.companies[G.PLAYER_ID].reputation == 45
    assert world.companies["ai-0"].cash == 75_000


def test_unknown_personality_skipped():
    world = make_world()
    world.companies["ai-0"].personality = "nobody"
    assert competitors.run_competitor(toolset(world), world.companies["ai-0"], Fixed(0.0)) is None
