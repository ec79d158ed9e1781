"""Fixed-step integrator loop driving the kinetics, display, particles and chart."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .chart import ChartRecorder
from .config import SimConfig
from .controls import ControlSurface
from .display import DisplayUpdater
from .kinetics import Concentrations, euler_step
from .particles import ParticleAnimator
from .scheduling import Handle, ManualScheduler, Scheduler

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Simulation:
    """
    Self-rescheduling tick chain over the Claisen kinetics model.

    Each tick reads the live forward rate, applies one Euler step, advances
    the clock and renders display text, particles and a chart sample (in that
    order) before scheduling the next tick. At most one tick is pending at a
    time: the previous handle is always cancelled before a new one is made.
    """

    def __init__(
        self,
        config: SimConfig,
        controls: Optional[ControlSurface] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config
        self.controls = controls or ControlSurface(config.default_rate)
        self.scheduler = scheduler

        self.display = DisplayUpdater(config)
        self.particles = ParticleAnimator(config, rng=rng)
        self.chart = ChartRecorder(config)

        self._pending: Optional[Handle] = None
        self._listeners: List[Listener] = []

        self.state = RunState.IDLE
        self.concentrations = Concentrations.initial(config.initial_eta)
        self.ticks = 0
        self.t = 0.0
        self.frame: Dict[str, Any] = {}
        self.reset()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, message: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            listener(message)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule(self) -> None:
        self._cancel_pending()
        scheduler = self.scheduler or asyncio.get_running_loop()
        self._pending = scheduler.call_later(self.config.frame_interval, self.tick)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Restart from the initial state and begin ticking."""
        if self.state is RunState.RUNNING:
            self.stop()
        self.reset()

        self.controls.lock()
        self.state = RunState.RUNNING
        logger.info("Run started with k_fwd=%s", self.controls.read_rate())
        self._emit(self.state_message())
        self._schedule()

    def stop(self) -> None:
        """Cancel the pending tick and keep the current state on screen."""
        self._cancel_pending()
        self.controls.unlock()
        if self.state is RunState.RUNNING:
            logger.info("Run stopped at t=%.1f", self.t)
        self.state = RunState.STOPPED

        # The last sample was already sent with its tick
        self.frame = {**self.frame, "chart_sample": None}
        self._emit(self.state_message())

    def reset(self) -> None:
        """Restore initial concentrations, clear the chart and redraw."""
        self._cancel_pending()
        self.controls.unlock()
        self.state = RunState.IDLE

        self.concentrations = Concentrations.initial(self.config.initial_eta)
        self.ticks = 0
        self.t = 0.0

        self.chart.clear()
        self.particles.clear()
        self._emit({"type": "chart", "payload": self.chart.as_chart_data()})

        self.frame = {
            "display": self.display.render(self.t, self.concentrations),
            "canvas": self._draw_particles(),
            "chart_sample": None,
        }
        self._emit(self.state_message())

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """One unit of work; reschedules itself while the run lasts."""
        self._pending = None
        if self.state is not RunState.RUNNING:
            return

        if self.t >= self.config.max_time:
            logger.info("Run finished at t=%.1f", self.t)
            self.stop()
            return

        k_fwd = self.controls.read_rate()
        self.concentrations = euler_step(
            self.concentrations,
            k_fwd,
            self.config.k_rev,
            self.config.k_couple,
            self.config.time_step,
        )
        self.ticks += 1
        self.t = self.ticks * self.config.time_step

        self.frame = {
            "display": self.display.render(self.t, self.concentrations),
            "canvas": self._draw_particles(),
            "chart_sample": self.chart.record(self.t, self.concentrations),
        }

        if self.ticks % 100 == 0:
            logger.debug(
                "Tick %d, t=%.1f, concentrations=%s",
                self.ticks, self.t, self.concentrations.as_dict(),
            )

        self._emit(self.state_message())
        self._schedule()

    def _draw_particles(self) -> Dict[str, Any]:
        self.particles.update(self.t, self.concentrations)
        return self.particles.render()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def get_state(self) -> Dict[str, Any]:
        """Get current state for API/visualization."""
        return {
            "status": self.state.value,
            "t": self.t,
            "ticks": self.ticks,
            "concentrations": self.concentrations.as_dict(),
            "controls": self.controls.as_dict(),
            **self.frame,
        }

    def state_message(self) -> Dict[str, Any]:
        return {"type": "state", "payload": self.get_state()}


def run_headless(config: SimConfig, k_fwd: float) -> Simulation:
    """Run one full simulation without an event loop and return it stopped."""
    scheduler = ManualScheduler()
    sim = Simulation(config, scheduler=scheduler)
    sim.controls.set_rate(k_fwd)
    sim.start()
    scheduler.run_until_idle()
    return sim
