# MIT License (see LICENSE)
"""
Sample models.

    - SpringOscillator: conservative, with an exact solution; used to check
      solver accuracy and the adaptive energy bound.
    - MagnetWheel: a damped wheel driven by magnetic attraction, with
      computed energy slots and a singular configuration.
"""
from .oscillator import SpringOscillator
from .magnet_wheel import MagnetWheel

__all__ = [
    "SpringOscillator",
    "MagnetWheel",
]
