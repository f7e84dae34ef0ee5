"""
Sampling loop that pairs successive snapshots per target.
"""

from .sampler import CycleReport, Sampler

__all__ = ["CycleReport", "Sampler"]
