import sys
from pathlib import Path
import json
import time

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import events  # type: ignore
import runner  # type: ignore
import sim  # type: ignore
import objects as G  # type: ignore
from config import SimulationConfig  # type: ignore
from objects import GamePhase, Severity  # type: ignore


def new_sim(seed=7, **overrides):
    overrides.setdefault("ai_action_probability", 0)
    config = SimulationConfig(**overrides)
    clock = sim.SteppedClock()
    simulation = sim.Simulation(config, seed=seed, clock=clock)
    simulation.initialize_world()
    return simulation, clock


def step(simulation, clock, n=1):
    outcomes = []
    for _ in range(n):
        clock.advance(simulation.config.tick_interval_ms)
        outcomes.append(simulation.tick())
    return outcomes


def shock(simulation, template="global_oil_shock"):
    event = events.create_big_event(template, Severity.LOW, simulation.now())
    simulation.world.events.active_events.append(event)
    assert simulation.enter_shock_phase(event)
    return event


def test_initialize_world():
    simulation, _ = new_sim()
    world = simulation.world
    assert len(world.companies) == 6
    player = simulation.player
    assert player.is_player
    assert player.cash == 100_000
    assert sorted(world.assets[a].type for a in player.assets) == ["data_center", "factory"]
    assert len(simulation.ai_companies) == 5
    assert all(c.personality for c in simulation.ai_companies)
    assert all(owner is None for owner in world.territories.values())
    assert world.phase == GamePhase.CALM
    assert world.season_end == world.season_start + 20 * 60 * 1000


def test_same_seed_same_season():
    a, clock_a = new_sim(seed=3, ai_action_probability=0.5)
    b, clock_b = new_sim(seed=3, ai_action_probability=0.5)
    step(a, clock_a, 30)
    step(b, clock_b, 30)
    assert {k: v.current_price for k, v in a.world.market.prices.items()} == \
        {k: v.current_price for k, v in b.world.market.prices.items()}
    assert {k: c.cash for k, c in a.world.companies.items()} == \
        {k: c.cash for k, c in b.world.companies.items()}


def test_tick_produces_and_sells():
    simulation, clock = new_sim()
    cash = simulation.player.cash
    step(simulation, clock)
    assert simulation.player.cash > cash
    assert simulation.world.tick_count == 1
    assert simulation.player.production_capacity > 0

# -----------------------------------
# Phase machine
# -----------------------------------

def test_event_fires_and_enters_shock():
    simulation, clock = new_sim(event_probability=1.0)
    simulation.world.events.last_event_time = -1_000_000
    outcome, = step(simulation, clock)
    world = simulation.world
    assert outcome == sim.TickOutcome.EVENT_FIRED
    assert world.phase == GamePhase.SHOCK
    assert world.breaking_event_id == world.events.active_events[0].id
    assert world.player_action_points == 3
    assert world.news.items[0].category == G.NewsCategory.CRISIS


def test_full_phase_cycle():
    simulation, clock = new_sim(reaction_window_ticks=3, resolution_delay_ms=2000)
    shock(simulation)
    assert simulation.dismiss_breaking_event()
    world = simulation.world
    assert world.phase == GamePhase.REACTION

    outcomes = step(simulation, clock, 3)
    assert outcomes == [sim.TickOutcome.REACTION_COUNTDOWN, sim.TickOutcome.REACTION_COUNTDOWN,
                        sim.TickOutcome.PHASE_ADVANCED]
    assert world.phase == GamePhase.RESOLUTION
    assert world.player_action_points == 0

    step(simulation, clock)
    assert world.phase == GamePhase.RESOLUTION
    step(simulation, clock)
    assert world.phase == GamePhase.CALM


def test_shock_is_acknowledged_automatically():
    simulation, clock = new_sim(shock_timeout_ticks=2)
    shock(simulation)
    assert step(simulation, clock) == [sim.TickOutcome.CONTINUED]
    assert simulation.world.phase == GamePhase.SHOCK
    assert step(simulation, clock) == [sim.TickOutcome.PHASE_ADVANCED]
    assert simulation.world.phase == GamePhase.REACTION


def test_shock_only_from_calm_or_resolution():
    simulation, _ = new_sim()
    shock(simulation)
    event = events.create_big_event("rate_hike", Severity.LOW, 0)
    assert not simulation.enter_shock_phase(event)
    assert not simulation.enter_resolution_phase()
    assert not simulation.enter_calm_phase()


def test_respond_to_event_choice():
    simulation, _ = new_sim()
    event = shock(simulation)
    player = simulation.player
    assert not simulation.respond_to_event_choice("wrong-id", "price_gouge")
    assert not simulation.respond_to_event_choice(event.id, "no_such_choice")
    assert simulation.respond_to_event_choice(event.id, "price_gouge")
    assert player.cash == 115_000
    assert player.reputation == 42
    assert simulation.world.phase == GamePhase.REACTION
    # the shock is over
    assert not simulation.respond_to_event_choice(event.id, "ride_it_out")


def test_unaffordable_choice_rejected():
    simulation, _ = new_sim()
    event = shock(simulation)
    simulation.player.cash = 19_999
    assert not simulation.respond_to_event_choice(event.id, "hedge_fuel")
    assert simulation.world.phase == GamePhase.SHOCK
    simulation.player.cash = 20_000
    assert simulation.respond_to_event_choice(event.id, "hedge_fuel")
    assert simulation.player.cash == 0


def test_market_cap_choice():
    simulation, _ = new_sim()
    event = shock(simulation, "market_crash")
    assert simulation.respond_to_event_choice(event.id, "buy_the_dip")
    assert simulation.player.market_cap == pytest.approx(130_000)
    assert simulation.player.share_price == pytest.approx(0.13)


def test_reaction_actions_spend_action_points():
    simulation, _ = new_sim()
    shock(simulation)
    simulation.dismiss_breaking_event()
    world = simulation.world
    for remaining in (2, 1, 0):
        assert simulation.lobby(1000)
        assert world.player_action_points == remaining
    assert not simulation.lobby(1000)
    # failed actions do not spend points; ungated ones stay free
    assert simulation.upgrade_department("legal")
    assert world.player_action_points == 0


def test_failed_gated_action_keeps_point():
    simulation, _ = new_sim()
    shock(simulation)
    simulation.dismiss_breaking_event()
    assert not simulation.lobby(10_000_000)
    assert simulation.world.player_action_points == 3


def test_calm_actions_are_free():
    simulation, _ = new_sim()
    for _ in range(5):
        assert simulation.lobby(1000)
    assert simulation.world.player_action_points == 0

# -----------------------------------
# Distress & bankruptcy
# -----------------------------------

def test_distressed_ai_goes_bankrupt_player_survives():
    simulation, clock = new_sim(ai_company_count=1, distress_bankruptcy_ticks=3)
    world = simulation.world
    for company in world.companies.values():
        company.cash = 0
        company.debt = 1e12
    doomed = world.companies["ai-0"]
    doomed_assets = list(doomed.assets)

    step(simulation, clock, 2)
    assert world.is_distressed("ai-0")
    assert world.company_distress_ticks["ai-0"] == 2
    assert "ai-0" in world.companies

    step(simulation, clock)
    assert "ai-0" not in world.companies
    assert not any(a in world.assets for a in doomed_assets)
    assert not world.is_distressed("ai-0")
    assert G.PLAYER_ID in world.companies
    assert any(i.title == f"{doomed.name} declares bankruptcy" for i in world.news.items)


def test_acquired_subsidiary_goes_bankrupt_once_distressed():
    simulation, clock = new_sim(ai_company_count=1, distress_bankruptcy_ticks=3, event_probability=0)
    world = simulation.world
    player = world.companies[G.PLAYER_ID]
    player.cash = 1_000_000
    world.government.antitrust_enforcement = 0
    assert simulation.buyout_cost("nobody") == 0.0
    assert simulation.attempt_buyout("ai-0")
    subsidiary = world.companies["ai-0"]
    assert subsidiary.is_subsidiary
    assert subsidiary.assets == []
    acquired = len(player.assets)

    step(simulation, clock, 10)
    assert "ai-0" not in world.companies
    assert not world.is_distressed("ai-0")
    assert "ai-0" not in world.company_distress_ticks
    assert G.PLAYER_ID in world.companies
    assert len(player.assets) == acquired
    assert any(i.title == f"{subsidiary.name} declares bankruptcy" for i in world.news.items)


def test_recovered_company_leaves_distress():
    simulation, clock = new_sim(ai_company_count=0)
    world = simulation.world
    world.distressed_companies.append(G.PLAYER_ID)
    world.company_distress_ticks[G.PLAYER_ID] = 10
    step(simulation, clock)
    assert not world.is_distressed(G.PLAYER_ID)
    assert G.PLAYER_ID not in world.company_distress_ticks

# -----------------------------------
# Season end
# -----------------------------------

def test_season_ends_and_freezes():
    simulation, clock = new_sim(season_duration_ms=3000)
    assert step(simulation, clock, 2) == [sim.TickOutcome.CONTINUED] * 2
    assert step(simulation, clock) == [sim.TickOutcome.SEASON_ENDED]
    world = simulation.world
    assert world.season_ended
    assert len(world.season_results) == len(world.companies)
    assert [r.rank for r in world.season_results] == list(range(1, len(world.companies) + 1))
    assert world.news.items[0].title == "Season Over"

    assert step(simulation, clock) == [sim.TickOutcome.FROZEN]
    assert world.tick_count == 3
    assert not simulation.build_asset("factory")
    assert not simulation.lobby(1000)

# -----------------------------------
# Event effects
# -----------------------------------

def test_oil_shock_effects():
    simulation, _ = new_sim()
    world = simulation.world
    refinery = next((a for a in world.assets.values() if a.type == "refinery"), None)
    event = events.create_big_event("global_oil_shock", Severity.LOW, 0)
    world.events.active_events.append(event)
    sim.EventBehavior().apply_effects(simulation, event, 0, simulation.random)

    assert world.government.faction == "populist"
    assert [p.id for p in world.government.active_policies] == ["price_cap_oil"]
    assert world.government.active_policies[0].expires_at == event.expires_at
    assert world.media.narrative_frames[0].frame == "crisis"
    assert world.people.sentiment.trust_in_corporations < 50
    if refinery is not None:
        assert refinery.efficiency_multiplier == pytest.approx(1.5)
    factory = next(a for a in world.assets.values() if a.type == "factory")
    assert factory.efficiency_multiplier == pytest.approx(0.8)
    assert factory.production_per_tick["chips"] == 16


def test_antitrust_event_investigates_largest_tech_company():
    simulation, _ = new_sim()
    world = simulation.world
    simulation.player.share_price = 10.0
    simulation.player.market_cap = 10_000_000
    event = events.create_big_event("tech_antitrust_crackdown", Severity.LOW, 0)
    sim.EventBehavior().apply_effects(simulation, event, 0, simulation.random)
    assert [i.target_company_id for i in world.government.investigations] == [G.PLAYER_ID]
    assert world.government.antitrust_enforcement == 60

# -----------------------------------
# Snapshots & persistence
# -----------------------------------

def test_snapshot_round_trip():
    simulation, clock = new_sim()
    step(simulation, clock, 5)
    data = simulation.snapshot()
    json.dumps(data)
    restored = sim.Simulation(simulation.config)
    restored.restore(data)
    assert restored.snapshot() == data


def test_restore_migrates_legacy_records():
    simulation, _ = new_sim()
    data = simulation.snapshot()
    asset_id = simulation.player.assets[0]
    asset_type = data["assets"][asset_id]["type"]
    data["assets"][asset_id] = {"id": asset_id, "type": asset_type, "level": 1,
                                "maintenance_cost": 999, "production_rate": {"chips": 1}}
    player = data["companies"][G.PLAYER_ID]
    player["capital"] = player.pop("cash")

    restored = sim.Simulation(simulation.config)
    restored.restore(data)
    assert restored.world.assets[asset_id].upkeep_cost == 999
    assert restored.world.assets[asset_id].production_per_tick == {"chips": 1}
    assert restored.player.cash == 100_000


def test_save_and_load(tmp_path):
    path = tmp_path / "world.json"
    simulation, clock = new_sim()
    step(simulation, clock, 4)
    sim.save_world(simulation, path)
    assert sim.STORE_KEY in json.loads(path.read_text())

    loaded = sim.load_world(path, simulation.config)
    assert loaded.world.tick_count == 4
    assert set(loaded.world.companies) == set(simulation.world.companies)


def test_missing_or_empty_state_starts_new_world(tmp_path):
    fresh = sim.load_world(tmp_path / "nothing.json")
    assert len(fresh.world.companies) == 6

    empty = tmp_path / "empty.json"
    empty.write_text("")
    assert sim.load_world(empty).world.tick_count == 0


def test_main_runs_headless(tmp_path):
    path = tmp_path / "world.json"
    simulation = sim.main(ticks=3, seed=1, state_path=path)
    assert simulation.world.tick_count == 3
    assert path.exists()
    again = sim.main(ticks=2, seed=1, state_path=path)
    assert again.world.tick_count == 5

# -----------------------------------
# Real-time loop
# -----------------------------------

def wait_for(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


def test_game_loop_start_stop():
    simulation = sim.Simulation(SimulationConfig(tick_interval_ms=10, ai_action_probability=0))
    simulation.initialize_world()
    seen = []
    loop = runner.GameLoop(simulation, on_tick=seen.append)
    assert loop.start()
    assert not loop.start()
    assert wait_for(lambda: simulation.world.tick_count >= 2)
    loop.stop(timeout=2)
    assert not loop.running
    ticks = simulation.world.tick_count
    time.sleep(0.05)
    assert simulation.world.tick_count == ticks
    assert seen

    # and again
    assert loop.start()
    assert wait_for(lambda: simulation.world.tick_count > ticks)
    loop.stop(timeout=2)


def test_game_loop_stops_at_season_end():
    simulation = sim.Simulation(SimulationConfig(tick_interval_ms=10, season_duration_ms=1,
                                                 ai_action_probability=0))
    simulation.initialize_world()
    loop = runner.GameLoop(simulation)
    loop.start()
    assert wait_for(lambda: not loop.running)
    assert simulation.world.season_ended


@pytest.mark.parametrize("strategy", ["asset", "personality"])
def test_busy_ai_season_runs(strategy):
    simulation, clock = new_sim(seed=11, ai_strategy=strategy, ai_action_probability=1.0,
                                event_probability=1.0, event_cooldown_ms=20_000,
                                season_duration_ms=120_000)
    outcomes = step(simulation, clock, 130)
    assert sim.TickOutcome.EVENT_FIRED in outcomes
    assert sim.TickOutcome.SEASON_ENDED in outcomes
    assert outcomes[-1] == sim.TickOutcome.FROZEN
    world = simulation.world
    for company in world.companies.values():
        assert company.free_float + sum(company.shareholders.values()) == company.total_shares
        assert all(a in world.assets for a in company.assets)
    for entry in world.market.prices.values():
        assert entry.base_price * 0.1 <= entry.current_price <= entry.base_price * 5
