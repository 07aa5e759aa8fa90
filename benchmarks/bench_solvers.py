"""
Microbenchmark: time per advance for each registered solver.
Run:
  python benchmarks/bench_solvers.py
"""
import time
from diffeq_sim import AdvanceStrategy, Profiler, SolverSelector
from diffeq_sim.core.integrators import EulersMethod
from diffeq_sim.models import MagnetWheel, SpringOscillator


def run(make_model, name: str, steps: int = 500):
    prof = Profiler()
    sim = make_model()
    advance = AdvanceStrategy(sim, EulersMethod(sim), time_step=1/60, profiler=prof)
    SolverSelector(sim, advance, energy_system=sim).select(name)

    # warmup
    for _ in range(20):
        advance.advance()
    prof.stats.clear()

    t0 = time.perf_counter()
    for _ in range(steps):
        advance.advance()
    t1 = time.perf_counter()
    return (t1 - t0) / steps, prof.stats


if __name__ == "__main__":
    names = ["euler", "modified_euler", "rk4", "modified_euler_adaptive", "rk4_adaptive"]
    # adaptive solvers need conservative models
    models = [
        ("SpringOscillator", SpringOscillator),
        ("MagnetWheel(damping=0)", lambda: MagnetWheel(damping=0.0)),
    ]
    for label, make_model in models:
        print(label)
        for name in names:
            per_step, stats = run(make_model, name)
            summary = stats.summary()
            print(f"  {name:24s} step={1e3*per_step:7.3f} ms  "
                  f"solve={summary['solve']['mean_ms']:7.3f} ms  failures={stats.count('failures')}")
        print()
