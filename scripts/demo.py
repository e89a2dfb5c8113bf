from pathlib import Path
import sys

# Make src modules discoverable
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import sim  # type: ignore
from config import SimulationConfig  # type: ignore

import matplotlib.pyplot as plt


def run_season(seed: int = 42, ticks: int = 1200, strategy: str = "asset") -> None:
    """Play one headless season and chart resource prices and every company's NCP.

    One tick is one simulated second, so the default covers the full
    twenty-minute season.
    """
    config = SimulationConfig(ai_strategy=strategy)
    clock = sim.SteppedClock()
    simulation = sim.Simulation(config, seed=seed, clock=clock)
    world = simulation.initialize_world()

    price_history = {rid: [] for rid in world.market.prices}
    ncp_history = {cid: [] for cid in world.companies}
    shocks = []

    for t in range(1, ticks + 1):
        clock.advance(config.tick_interval_ms)
        outcome = simulation.tick()
        if outcome == sim.TickOutcome.EVENT_FIRED:
            shocks.append(t)
        for rid, entry in world.market.prices.items():
            price_history[rid].append(entry.current_price / entry.base_price)
        totals = {entry.company_id: entry.total for entry in simulation.leaderboard()}
        for cid, history in ncp_history.items():
            history.append(totals.get(cid, 0))
        if outcome in (sim.TickOutcome.SEASON_ENDED, sim.TickOutcome.FROZEN):
            break

    # ---------------------------------------------------------------------
    # Prices relative to base (figure 1)
    # ---------------------------------------------------------------------
    fig_prices, ax_prices = plt.subplots()
    for rid, history in price_history.items():
        ax_prices.plot(range(1, len(history) + 1), history, label=rid)
    for t in shocks:
        ax_prices.axvline(t, color="grey", linestyle=":", linewidth=0.8)
    ax_prices.set_xlabel("Tick")
    ax_prices.set_ylabel("Price / base price")
    ax_prices.set_title("Resource Prices (dotted: major events)")
    ax_prices.legend()

    # ---------------------------------------------------------------------
    # NCP per company (figure 2)
    # ---------------------------------------------------------------------
    fig_ncp, ax_ncp = plt.subplots()
    for cid, history in ncp_history.items():
        name = world.companies[cid].name if cid in world.companies else f"{cid} (bankrupt)"
        ax_ncp.plot(range(1, len(history) + 1), history, label=name)
    ax_ncp.set_xlabel("Tick")
    ax_ncp.set_ylabel("NCP")
    ax_ncp.set_title("Net Corporate Power")
    ax_ncp.legend()

    for entry in world.season_results or simulation.leaderboard():
        print(f"{entry.rank:>2}. {entry.name:<12} {entry.total:>8,}")
    plt.show()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Plot a headless season")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--ticks", type=int, default=1200)
    parser.add_argument("--strategy", choices=["asset", "personality"], default="asset")
    args = parser.parse_args()
    run_season(seed=args.seed, ticks=args.ticks, strategy=args.strategy)
