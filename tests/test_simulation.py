import pytest

from claisen.config import SimConfig
from claisen.controls import ControlLockedError
from claisen.kinetics import Concentrations, euler_step
from claisen.scheduling import ManualScheduler
from claisen.simulation import RunState, Simulation, run_headless


def make_simulation(**overrides):
    scheduler = ManualScheduler()
    config = SimConfig(seed=0, **overrides)
    return Simulation(config, scheduler=scheduler), scheduler


def test_initial_state_is_idle_and_seeded():
    sim, scheduler = make_simulation()

    assert sim.state is RunState.IDLE
    assert sim.concentrations == Concentrations(eta=1.0, enol=0.0, prod=0.0)
    assert sim.t == 0.0
    assert sim.particles.size == 200
    assert scheduler.pending == 0


def test_clock_advances_one_step_per_tick():
    sim, scheduler = make_simulation()
    sim.start()

    for n in range(1, 21):
        assert scheduler.run_pending() == 1
        assert sim.ticks == n
        assert sim.t == pytest.approx(n * 0.1)


def test_run_stops_at_max_time():
    sim, scheduler = make_simulation(max_time=1.0)
    sim.start()
    scheduler.run_until_idle()

    assert sim.state is RunState.STOPPED
    assert sim.ticks == 10
    assert sim.t == pytest.approx(1.0)
    assert scheduler.pending == 0
    assert sim.controls.rate_enabled


def test_zero_forward_rate_leaves_state_unchanged():
    sim, scheduler = make_simulation(default_rate=0.0, max_time=5.0)
    sim.start()
    scheduler.run_until_idle()

    assert sim.concentrations == Concentrations(eta=1.0, enol=0.0, prod=0.0)


def test_concentrations_stay_non_negative_every_tick():
    sim, scheduler = make_simulation(default_rate=25.0, max_time=10.0)
    seen = []
    sim.add_listener(lambda msg: seen.append(msg["payload"]["concentrations"]) if msg["type"] == "state" else None)
    sim.start()
    scheduler.run_until_idle()

    assert len(seen) > 100
    assert all(v >= 0.0 for c in seen for v in c.values())


def test_reset_restores_initial_state():
    sim, scheduler = make_simulation()
    sim.start()
    for _ in range(30):
        scheduler.run_pending()
    assert len(sim.chart) > 0

    sim.reset()

    assert sim.state is RunState.IDLE
    assert sim.concentrations == Concentrations(eta=1.0, enol=0.0, prod=0.0)
    assert sim.t == 0.0
    assert sim.ticks == 0
    assert len(sim.chart) == 0
    assert sim.particles.size == 200
    assert scheduler.run_pending() == 0


def test_reset_emits_empty_chart_then_state():
    sim, _ = make_simulation()
    messages = []
    sim.add_listener(messages.append)

    sim.reset()

    assert [m["type"] for m in messages] == ["chart", "state"]
    assert messages[0]["payload"]["labels"] == []
    assert messages[1]["payload"]["display"] == {"time": "0.0", "yield": "0.0"}


def test_double_start_keeps_single_tick_chain():
    sim, scheduler = make_simulation(max_time=2.0)
    sim.start()
    sim.start()

    assert scheduler.pending == 1
    assert scheduler.run_pending() == 1
    scheduler.run_until_idle()
    assert sim.ticks == 20


def test_start_while_running_restarts_from_zero():
    sim, scheduler = make_simulation()
    sim.start()
    for _ in range(15):
        scheduler.run_pending()

    sim.start()

    assert sim.ticks == 0
    assert sim.concentrations == Concentrations(eta=1.0, enol=0.0, prod=0.0)
    assert sim.state is RunState.RUNNING


def test_stop_cancels_pending_tick():
    sim, scheduler = make_simulation()
    sim.start()
    scheduler.run_pending()
    sim.stop()

    assert scheduler.run_pending() == 0
    assert sim.ticks == 1
    assert sim.state is RunState.STOPPED


def test_controls_locked_during_run():
    sim, scheduler = make_simulation()
    sim.controls.set_rate(0.8)
    sim.start()

    assert not sim.controls.rate_enabled
    assert not sim.controls.start_enabled
    with pytest.raises(ControlLockedError):
        sim.controls.set_rate(1.2)

    sim.stop()
    assert sim.controls.rate_enabled
    sim.controls.set_rate(1.2)
    assert sim.controls.read_rate() == 1.2


def test_rate_is_read_live_every_tick():
    sim, scheduler = make_simulation()
    sim.start()
    for _ in range(5):
        scheduler.run_pending()
    before = sim.concentrations

    sim.controls.rate_constant = 0.0
    scheduler.run_pending()

    cfg = sim.config
    assert sim.concentrations == euler_step(before, 0.0, cfg.k_rev, cfg.k_couple, cfg.time_step)


def test_frame_is_rendered_display_particles_chart():
    sim, scheduler = make_simulation()
    sim.start()
    for _ in range(5):
        scheduler.run_pending()

    state = sim.get_state()
    assert list(sim.frame.keys()) == ["display", "canvas", "chart_sample"]
    assert state["display"]["time"] == "0.5"
    assert state["chart_sample"]["label"] == "0.5"
    assert state["status"] == "running"


def test_run_headless_completes():
    sim = run_headless(SimConfig(max_time=5.0, seed=0), 0.5)

    assert sim.state is RunState.STOPPED
    assert sim.ticks == 50
    assert len(sim.chart) == 10
    assert sim.concentrations.prod > 0.0


def test_extreme_rate_runs_to_completion():
    sim, scheduler = make_simulation(max_time=1.0)
    sim.controls.set_rate(1e307)
    sim.start()
    scheduler.run_until_idle()

    assert sim.state is RunState.STOPPED
    assert sim.ticks == 10
    assert sim.controls.rate_enabled
    assert sim.particles.size <= 3 * sim.config.max_species_factor * sim.config.total_particles
