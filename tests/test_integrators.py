import numpy as np
import pytest
from diffeq_sim.core.integrators import EulersMethod, ModifiedEuler, RungeKutta
from diffeq_sim.errors import IntegrationFailure, InvalidState
from diffeq_sim.model import ODESim
from diffeq_sim.models import SpringOscillator, MagnetWheel


class Barrier(ODESim):
    """dx/dt = 1, undefined for x > limit."""

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


class NaNSlope(ODESim):
    def __init__(self):
        super().__init__(["x", "time"])

    def evaluate(self, vars, change, time_step):
        change[0] = np.nan
        change[1] = 1.0
        return None


class WritesComputed(ODESim):
    """Claims a derivative for a computed slot; solvers must ignore it."""

    def __init__(self):
        super().__init__(["x", "ke"], computed=(1,))
        self.state_vector().write([0.0, 7.0], continuous=True)

    def evaluate(self, vars, change, time_step):
        change[0] = 2.0
        change[1] = 5.0
        return None


def _end_error(solver_cls, h, T):
    sim = SpringOscillator(mass=1.0, stiffness=1.0, position=1.0, velocity=0.0)
    solver = solver_cls(sim)
    state = sim.state_vector()
    for _ in range(int(round(T / h))):
        assert solver.step(state, h) is None
    x_exp, v_exp = sim.analytic(T)
    assert state.time == pytest.approx(T)
    return float(np.hypot(state.value(0) - x_exp, state.value(1) - v_exp))


@pytest.mark.parametrize(
    "solver_cls, h, T, lo, hi",
    [
        (EulersMethod, 0.01, 1.0, 1.8, 2.2),
        (ModifiedEuler, 0.02, 1.0, 3.6, 4.4),
        (RungeKutta, 0.1, 2.0, 14.0, 18.0),
    ],
)
def test_order_of_accuracy(solver_cls, h, T, lo, hi):
    """
    Halving h on the harmonic oscillator should shrink the end-state error
    by 2**order: about 2 for Euler, 4 for Modified Euler, 16 for RK4.
    """
    e1 = _end_error(solver_cls, h, T)
    e2 = _end_error(solver_cls, h / 2, T)
    ratio = e1 / e2
    print(solver_cls.name, "err", e1, e2, "ratio", ratio)
    assert lo < ratio < hi


def test_euler_single_step_oscillator():
    sim = SpringOscillator(position=0.0, velocity=3.0)
    state = sim.state_vector()
    assert EulersMethod(sim).step(state, 0.01) is None
    assert abs(state.value(0) - 0.03) < 1e-9
    # acceleration is -x = 0 at the start state
    assert abs(state.value(1) - 3.0) < 1e-9
    assert abs(state.time - 0.01) < 1e-12


def test_euler_single_step_magnet_wheel():
    """
    angle=0, ω=3: magnet torques cancel by symmetry, leaving only damping:
        ω1 = 3 + 0.01 * (-0.7 * 3 / I),  I = ½·1·1² = 0.5
    """
    sim = MagnetWheel(angle=0.0, angular_velocity=3.0)
    state = sim.state_vector()
    assert EulersMethod(sim).step(state, 0.01) is None
    assert abs(state.value(MagnetWheel.ANGLE) - 0.03) < 1e-9
    assert abs(state.value(MagnetWheel.ANGULAR_VELOCITY) - (3.0 - 0.042)) < 1e-9


def test_euler_single_step_magnet_wheel_off_axis():
    """Hand-computed torque at an asymmetric angle."""
    a0, w0, h = 0.3, 3.0, 0.01
    sim = MagnetWheel(angle=a0, angular_velocity=w0)
    state = sim.state_vector()
    assert EulersMethod(sim).step(state, h) is None

    torque = -0.7 * w0
    for i in range(12):
        phi = 2 * np.pi * i / 12 + a0
        cx, cy = -0.7 * np.sin(phi), 0.7 * np.cos(phi)
        fx, fy = 0.0 - cx, 0.9 - cy
        d2 = fx * fx + fy * fy
        torque += (cx * fy - cy * fx) / d2
    w_exp = w0 + h * torque / 0.5
    assert abs(state.value(0) - (a0 + h * w0)) < 1e-9
    assert abs(state.value(1) - w_exp) < 1e-9


@pytest.mark.parametrize(
    "solver_cls, stage",
    [(ModifiedEuler, 2), (RungeKutta, 4)],
)
def test_failed_stage_leaves_state_untouched(solver_cls, stage):
    """
    From x=0.42 with h=0.1 the early stages are valid but the end-point stage
    lands at x=0.52, past the barrier.
    """
    sim = Barrier(0.42)
    state = sim.state_vector()
    before, seq = state.read(), state.sequences()

    failure = solver_cls(sim).step(state, 0.1)

    assert isinstance(failure, IntegrationFailure)
    assert failure.stage == stage
    assert failure.solver == solver_cls.name
    assert failure.cause.index == 0
    assert np.array_equal(state.read(), before)
    assert np.array_equal(state.sequences(), seq)


@pytest.mark.parametrize("solver_cls", [EulersMethod, ModifiedEuler, RungeKutta])
def test_first_stage_failure(solver_cls):
    sim = MagnetWheel(magnet_radius=0.9, angle=0.0)
    state = sim.state_vector()
    before = state.read()
    failure = solver_cls(sim).step(state, 0.01)
    assert isinstance(failure, IntegrationFailure)
    assert failure.stage == 1
    assert np.array_equal(state.read(), before)


@pytest.mark.parametrize("solver_cls", [EulersMethod, ModifiedEuler, RungeKutta])
def test_non_finite_derivative_is_invalid_state(solver_cls):
    sim = NaNSlope()
    state = sim.state_vector()
    failure = solver_cls(sim).step(state, 0.1)
    assert isinstance(failure, IntegrationFailure)
    assert failure.cause.message == "non-finite derivative"
    assert failure.cause.index == 0
    assert np.array_equal(state.read(), [0.0, 0.0])


@pytest.mark.parametrize("solver_cls", [EulersMethod, ModifiedEuler, RungeKutta])
def test_computed_slots_are_not_integrated(solver_cls):
    sim = WritesComputed()
    state = sim.state_vector()
    assert solver_cls(sim).step(state, 0.5) is None
    assert state.value(0) == pytest.approx(1.0)
    assert state.value(1) == 7.0


def test_name_matching():
    sim = SpringOscillator()
    assert RungeKutta(sim).name_equals("RK4")
    assert ModifiedEuler(sim).name_equals("Modified Euler")
    assert not EulersMethod(sim).name_equals("rk4")
