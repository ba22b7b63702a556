"""Pure aggregation over typed listing records."""

from .analytics import compute_neighborhood_stats, compute_occupancy_estimate

__all__ = [
    "compute_neighborhood_stats",
    "compute_occupancy_estimate",
]
