import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

import news
import sim
from config import load_config

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Real-time loop
# ──────────────────────────────────────────────────────────────────────────────

class GameLoop:
    """Ticks a Simulation on a background thread at the configured cadence.

    The loop can be stopped and started again; ticks and player actions share
    the simulation's lock, so they never interleave.
    """

    def __init__(self, simulation: sim.Simulation,
                 on_tick: Optional[Callable[[sim.TickOutcome], None]] = None):
        self.simulation = simulation
        self.on_tick = on_tick
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        if self.running:
            return False
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="game-loop", daemon=True)
        self._thread.start()
        logger.info("Game loop started")
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
        logger.info("Game loop stopped")

    def _run(self) -> None:
        interval = self.simulation.config.tick_interval_ms / 1000
        # wait() returns True as soon as stop() is called
        while not self._stop.wait(interval):
            outcome = self.simulation.tick()
            if self.on_tick is not None:
                self.on_tick(outcome)
            if outcome in (sim.TickOutcome.SEASON_ENDED, sim.TickOutcome.FROZEN):
                break


def run(seed: int = 0, seconds: float = 30, state_path: Path = sim.WORLD_STATE_PATH,
        config_path: Optional[Path] = None) -> None:
    config = load_config(config_path)
    simulation = sim.load_world(state_path, config, seed)
    seen = set()

    def print_headlines(outcome: sim.TickOutcome) -> None:
        for item in reversed(news.get_recent_news(simulation.world.news)):
            if item.id not in seen:
                seen.add(item.id)
                print(f"[{simulation.world.phase.value:>10}] {item.title}")

    loop = GameLoop(simulation, on_tick=print_headlines)
    loop.start()
    try:
        deadline = time.monotonic() + seconds
        while loop.running and time.monotonic() < deadline:
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass
    finally:
        loop.stop()
        sim.save_world(simulation, state_path)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run the oligarchy simulation in real time")
    parser.add_argument("--seed", type=int, default=0, help="RNG seed")
    parser.add_argument("--seconds", type=float, default=30, help="How long to run before saving")
    parser.add_argument("--state", type=Path, default=sim.WORLD_STATE_PATH, help="World snapshot file")
    parser.add_argument("--config", type=Path, default=None, help="JSON file overriding SimulationConfig")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    run(seed=args.seed, seconds=args.seconds, state_path=args.state, config_path=args.config)
