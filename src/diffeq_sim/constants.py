# MIT License (see LICENSE)
"""
Default tuning knobs for the integration framework.

These are the values AdaptiveConfig falls back to when an option is
omitted, plus the fixed step used by AdvanceStrategy. All step sizes are in
units of simulated time.
"""
from __future__ import annotations

# Largest relative energy drift |E1 - E0| / max(|E0|, floor) accepted
# for a sub-step, measured against the energy at the start of the advance.
DEFAULT_TOLERANCE: float = 1e-6

# Multiplier applied to the trial step after a comfortably accurate sub-step.
DEFAULT_GROWTH_FACTOR: float = 2.0

# Multiplier applied to the trial step after a rejected sub-step.
DEFAULT_SHRINK_FACTOR: float = 0.5

# Consecutive rejections tolerated for a single sub-step before giving up.
# 20 halvings shrink a step by about six orders of magnitude.
DEFAULT_MAX_RETRIES: int = 20

# Smallest sub-step the adaptive solver will take.
DEFAULT_MIN_STEP: float = 1e-10

# Growth only happens when drift < GROWTH_THRESHOLD * tolerance.
DEFAULT_GROWTH_THRESHOLD: float = 0.1

# Denominator floor for relative drift, so that a model whose total energy
# is near zero does not blow the ratio up.
ENERGY_FLOOR: float = 1e-12

# Default step for AdvanceStrategy.advance().
DEFAULT_TIME_STEP: float = 0.025
