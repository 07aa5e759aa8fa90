import numpy as np
import pytest
from diffeq_sim.core.adaptive import AdaptiveConfig, AdaptiveStepSolver
from diffeq_sim.core.integrators import EulersMethod, ModifiedEuler, RungeKutta
from diffeq_sim.core.invariants import relative_drift
from diffeq_sim.errors import DivergenceFailure, IntegrationFailure, InvalidState
from diffeq_sim.model import ODESim
from diffeq_sim.models import SpringOscillator, MagnetWheel


class Decay(ODESim):
    """dx/dt = -x with energy x²: loses energy at any step size."""

    def __init__(self):
        super().__init__(["x", "time"])
        self.state_vector().write([1.0, 0.0], continuous=True)

    def evaluate(self, vars, change, time_step):
        change[0] = -vars[0]
        change[1] = 1.0
        return None

    def energy(self, vars):
        return float(vars[0] ** 2)


class Barrier(ODESim):
    """dx/dt = 1 with constant energy, undefined for x > limit."""

    def __init__(self, x0, limit=0.5):
        super().__init__(["x", "time"])
        self.limit = limit
        self.state_vector().write([x0, 0.0], continuous=True)

    def evaluate(self, vars, change, time_step):
        if vars[0] > self.limit:
            return InvalidState("past barrier", index=0)
        change[0] = 1.0
        change[1] = 1.0
        return None

    def energy(self, vars):
        return 1.0


class ShortReach(ODESim):
    """Refuses any stage further than 0.3 from the start of the step."""

    def __init__(self):
        super().__init__(["x", "time"])

    def evaluate(self, vars, change, time_step):
        if time_step > 0.3:
            return InvalidState("stage too far ahead")
        change[0] = 1.0
        change[1] = 1.0
        return None

    def energy(self, vars):
        return 1.0


def _adaptive(sim, fixed_cls=RungeKutta, **kw):
    return AdaptiveStepSolver(sim, sim, fixed_cls(sim), AdaptiveConfig(**kw))


@pytest.mark.parametrize("H", [0.05, 0.1, 0.5, 2.0, 3.0])
def test_energy_drift_bounded_rk4(H):
    tol = 1e-6
    sim = SpringOscillator(position=1.0, velocity=0.0)
    solver = _adaptive(sim, tolerance_energy_drift=tol)
    state = sim.state_vector()
    e0 = sim.energy(state.read())

    assert solver.step(state, H) is None

    drift = relative_drift(e0, sim.energy(state.read()))
    print("H", H, "drift", drift, "substeps", solver.stats.accepted, "rejected", solver.stats.rejected)
    assert drift <= tol
    assert solver.stats.max_drift <= tol


@pytest.mark.parametrize("fixed_cls", [ModifiedEuler, RungeKutta])
@pytest.mark.parametrize("H", [1.0, 2.0, 5.0, 10.0, 20.0])
def test_long_advances_with_default_config(fixed_cls, H):
    """
    Heun and RK4 drift in one direction on the oscillator, so the sub-steps
    must share the drift budget over the whole advance.
    """
    sim = SpringOscillator()
    solver = AdaptiveStepSolver(sim, sim, fixed_cls(sim))
    state = sim.state_vector()
    e0 = sim.energy(state.read())

    assert solver.step(state, H) is None

    drift = relative_drift(e0, sim.energy(state.read()))
    print(solver.name, "H", H, "drift", drift, "substeps", solver.stats.accepted)
    assert drift <= solver.config.tolerance_energy_drift
    assert solver.stats.covered == H
    assert state.time == pytest.approx(H)


def test_tight_tolerance_rk4():
    tol = 1e-8
    sim = SpringOscillator()
    solver = _adaptive(sim, tolerance_energy_drift=tol)
    state = sim.state_vector()
    e0 = sim.energy(state.read())
    assert solver.step(state, 2.0) is None
    assert relative_drift(e0, sim.energy(state.read())) <= tol


def test_energy_drift_bounded_modified_euler():
    tol = 1e-6
    sim = SpringOscillator(position=1.0, velocity=0.5)
    solver = _adaptive(sim, ModifiedEuler, tolerance_energy_drift=tol)
    state = sim.state_vector()
    for _ in range(10):
        e0 = sim.energy(state.read())
        assert solver.step(state, 0.1) is None
        assert relative_drift(e0, sim.energy(state.read())) <= tol
    assert state.time == pytest.approx(1.0)


def test_repeated_advances_stay_bounded():
    """Each advance is bounded against its own starting energy."""
    tol = 1e-7
    sim = SpringOscillator(mass=2.0, stiffness=3.0, position=0.3, velocity=-1.0)
    solver = _adaptive(sim, tolerance_energy_drift=tol)
    state = sim.state_vector()
    for _ in range(25):
        e0 = sim.energy(state.read())
        assert solver.step(state, 0.2) is None
        assert relative_drift(e0, sim.energy(state.read())) <= tol


@pytest.mark.parametrize("H", [0.3, 1 / 3, 0.7, 1.9, 1e-3])
def test_step_coverage(H):
    sim = SpringOscillator(position=1.0)
    solver = _adaptive(sim, tolerance_energy_drift=1e-8)
    state = sim.state_vector()

    assert solver.step(state, H) is None

    subs = solver.stats.substeps
    assert solver.stats.covered == pytest.approx(H, rel=1e-12, abs=1e-15)
    assert state.time == pytest.approx(H, rel=1e-12, abs=1e-15)
    assert all(solver.config.min_step_size <= h <= H * (1 + 1e-12) for h in subs)
    x_exp, v_exp = sim.analytic(H)
    assert abs(state.value(0) - x_exp) < 1e-5
    assert abs(state.value(1) - v_exp) < 1e-5


def test_zero_step_is_noop():
    sim = SpringOscillator()
    solver = _adaptive(sim)
    before = sim.state_vector().read()
    assert solver.step(sim.state_vector(), 0.0) is None
    assert np.array_equal(sim.state_vector().read(), before)
    assert solver.stats.accepted == 0


def test_non_finite_step_is_divergence():
    sim = SpringOscillator()
    solver = _adaptive(sim)
    before = sim.state_vector().read()
    for H in (float("nan"), float("inf")):
        failure = solver.step(sim.state_vector(), H)
        assert isinstance(failure, DivergenceFailure)
        assert failure.elapsed == 0.0
    assert np.array_equal(sim.state_vector().read(), before)


@pytest.mark.parametrize("H", [0.9, 1.9])
def test_covered_is_exactly_the_request(H):
    sim = SpringOscillator()
    solver = _adaptive(sim)
    assert solver.step(sim.state_vector(), H) is None
    assert solver.stats.covered == H


def test_dissipative_model_is_rejected_as_drift():
    """Damping loses energy at any step size, which the controller cannot accept."""
    sim = MagnetWheel(damping=0.7)
    solver = _adaptive(sim)
    state = sim.state_vector()
    before = state.read()

    failure = solver.step(state, 0.025)

    assert isinstance(failure, DivergenceFailure)
    assert "retries" in failure.reason
    assert failure.cause is None
    assert failure.elapsed == 0.0
    assert solver.stats.energy_rejections == solver.config.max_retries + 1
    assert np.array_equal(state.read(), before)


def test_step_size_memory():
    """
    The first advance discovers a workable step by repeated halving; the
    second starts from it and needs far fewer rejections.
    """
    sim = SpringOscillator(position=1.0)
    solver = _adaptive(sim, tolerance_energy_drift=1e-6)
    state = sim.state_vector()
    assert solver.last_step_size is None

    assert solver.step(state, 2.0) is None
    first = solver.stats.rejected
    remembered = solver.last_step_size
    assert remembered is not None and remembered < 2.0

    assert solver.step(state, 2.0) is None
    second = solver.stats.rejected
    print("rejections", first, second, "remembered", remembered)
    assert second < first

    solver.reset()
    assert solver.last_step_size is None


def test_remembered_step_is_clamped_to_request():
    sim = SpringOscillator(position=1.0)
    solver = _adaptive(sim, tolerance_energy_drift=1e-3)
    state = sim.state_vector()
    assert solver.step(state, 0.5) is None
    assert solver.step(state, 0.01) is None
    assert solver.stats.substeps == [pytest.approx(0.01)]


def test_accepted_substeps_respect_heun_drift():
    """Every accepted Heun sub-step fits the per-step energy gain in tolerance."""
    sim = SpringOscillator(position=1.0)
    solver = _adaptive(sim, ModifiedEuler, tolerance_energy_drift=1e-6)
    state = sim.state_vector()
    assert solver.step(state, 0.1) is None
    # Heun on this oscillator gains exactly h**4/4 of relative energy per step
    for h in solver.stats.substeps:
        assert h ** 4 / 4 <= 1e-6


def test_recovers_from_solver_failure():
    sim = ShortReach()
    solver = _adaptive(sim)
    state = sim.state_vector()

    assert solver.step(state, 1.0) is None

    assert solver.stats.solver_failures >= 2
    assert state.value(0) == pytest.approx(1.0)
    assert all(h <= 0.3 * 2 for h in solver.stats.substeps)


def test_divergence_keeps_committed_substeps():
    """
    From x=0.3 the barrier at 0.5 lets the first 0.2 of the advance
    through; after that every trial fails, so the step size collapses.
    """
    sim = Barrier(0.3)
    solver = _adaptive(sim)
    state = sim.state_vector()
    seq = state.sequences()

    failure = solver.step(state, 0.4)

    assert isinstance(failure, DivergenceFailure)
    assert failure.solver == "rk4_adaptive"
    assert isinstance(failure.cause, IntegrationFailure)
    assert failure.elapsed == pytest.approx(0.2)
    assert state.value(0) == pytest.approx(0.5)
    assert np.array_equal(state.sequences(), seq)


def test_divergence_on_retry_limit_restores_substep():
    sim = Decay()
    solver = _adaptive(sim, EulersMethod, tolerance_energy_drift=1e-6, max_retries=5)
    state = sim.state_vector()
    before = state.read()

    failure = solver.step(state, 1.0)

    assert isinstance(failure, DivergenceFailure)
    assert "retries" in failure.reason
    assert failure.cause is None
    assert failure.elapsed == 0.0
    assert solver.stats.energy_rejections == 6
    assert np.array_equal(state.read(), before)


def test_divergence_on_min_step():
    sim = Decay()
    solver = _adaptive(sim, tolerance_energy_drift=1e-6, min_step_size=1e-3, max_retries=100)
    state = sim.state_vector()
    before = state.read()

    failure = solver.step(state, 1.0)

    assert isinstance(failure, DivergenceFailure)
    assert "minimum" in failure.reason
    assert failure.step_size < 1e-3
    assert np.array_equal(state.read(), before)


def test_undamped_magnet_wheel_energy():
    tol = 1e-5
    sim = MagnetWheel(damping=0.0, angular_velocity=3.0)
    solver = _adaptive(sim, tolerance_energy_drift=tol)
    state = sim.state_vector()
    for _ in range(8):
        e0 = sim.energy(state.read())
        assert solver.step(state, 0.25) is None
        assert relative_drift(e0, sim.energy(state.read())) <= tol
    assert state.time == pytest.approx(2.0)


def test_requires_energy_system():
    sim = ShortReach()
    with pytest.raises(TypeError):
        AdaptiveStepSolver(sim, object(), RungeKutta(sim))


def test_name_and_order():
    sim = SpringOscillator()
    assert _adaptive(sim).name == "rk4_adaptive"
    assert _adaptive(sim, ModifiedEuler).name == "modified_euler_adaptive"
    assert _adaptive(sim, ModifiedEuler).order == 2


@pytest.mark.parametrize(
    "kw",
    [
        {"tolerance_energy_drift": 0.0},
        {"step_growth_factor": 1.0},
        {"step_shrink_factor": 1.0},
        {"step_shrink_factor": 0.0},
        {"max_retries": 0},
        {"max_retries": 2.5},
        {"min_step_size": -1e-3},
        {"growth_threshold": 1.5},
    ],
)
def test_config_validation(kw):
    with pytest.raises(ValueError):
        AdaptiveConfig(**kw)
