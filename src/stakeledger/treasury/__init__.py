"""Treasury helpers operating alongside the staking ledger."""

from .ratio_controller import BASIS_POINTS_GRANULARITY, RatioController

__all__ = ["BASIS_POINTS_GRANULARITY", "RatioController"]
