"""Block-by-block scenario simulation."""

from .runner import LedgerEnvironment, ScenarioRunner, SimulationResult, build_environment

__all__ = ["LedgerEnvironment", "ScenarioRunner", "SimulationResult", "build_environment"]
