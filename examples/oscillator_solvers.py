from diffeq_sim import AdvanceStrategy, SolverSelector
from diffeq_sim.core.integrators import EulersMethod
from diffeq_sim.models import SpringOscillator

T = 10.0

for name in ["euler", "modified_euler", "rk4", "modified_euler_adaptive", "rk4_adaptive"]:
    sim = SpringOscillator(mass=1.0, stiffness=4.0, position=1.0, velocity=0.0)
    advance = AdvanceStrategy(sim, EulersMethod(sim), time_step=0.05)
    SolverSelector(sim, advance, energy_system=sim).select(name)

    e0 = sim.energy(sim.state_vector().read())
    advance.run(T)

    state = sim.state_vector()
    x_exp, _ = sim.analytic(T)
    print(f"{name:24s} x={state.value(0): .6f}  exact={x_exp: .6f}  "
          f"energy drift={abs(state.value(SpringOscillator.TOTAL) - e0) / e0:.2e}")
