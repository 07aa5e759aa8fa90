from diffeq_sim import AdvanceStrategy, SolverSelector, configure_logging
from diffeq_sim.core.integrators import RungeKutta
from diffeq_sim.models import MagnetWheel

configure_logging("INFO")

# undamped: the adaptive solvers need a conservative model
wheel = MagnetWheel(damping=0.0, angular_velocity=4.0)
advance = AdvanceStrategy(wheel, RungeKutta(wheel), time_step=1/60)
selector = SolverSelector(wheel, advance, energy_system=wheel)
selector.subscribe(lambda event: print("now using", event.name))

state = wheel.state_vector()
for frame in range(600):
    if frame == 300:
        selector.select("rk4_adaptive")
    failure = advance.advance()
    if failure is not None:
        print("stopped:", failure)
        break
    if frame % 60 == 0:
        print(f"t={advance.time:5.2f}  angle={state.value(MagnetWheel.ANGLE):8.3f}  "
              f"omega={state.value(MagnetWheel.ANGULAR_VELOCITY):7.3f}  "
              f"E={state.value(MagnetWheel.TOTAL):8.4f}")
