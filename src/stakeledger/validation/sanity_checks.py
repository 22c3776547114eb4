"""Sanity checks and validation for simulation inputs and outputs."""

from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import Config
from ..engine.accounting import LedgerSnapshot


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "conservation", "bounds"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run sanity checks on configuration and ledger snapshots."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        rewards = self.config.rewards
        sim = self.config.simulation
        scale = self.config.constants.scale_factor

        if not self.config.pools and not any(a.action == "add_pool" for a in self.config.scenario.actions):
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="No pools configured; nothing can be staked",
            ))

        # Reserve runway against the simulated horizon
        emission = rewards.reward_per_block * sim.blocks
        if rewards.initial_reserve < emission:
            warnings.append(ValidationWarning(
                severity="warning",
                category="sustainability",
                message="Reward reserve does not cover emission over the simulated horizon",
                details=f"Reserve: {rewards.initial_reserve:,}, emission over {sim.blocks} blocks: {emission:,}"
            ))

        if rewards.reward_per_block == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="reward_per_block is 0; no rewards will accrue",
            ))

        # Accumulator resolution: a single-block reward spread over a large
        # virtual supply should not truncate to zero
        if rewards.reward_per_block > 0:
            largest_supply = sim.max_deposit * sim.stakers * max(
                (m.multiplier for p in self.config.pools for m in p.multipliers), default=scale
            ) // scale
            if largest_supply > 0 and rewards.reward_per_block * self.config.constants.acc_reward_precision < largest_supply:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="precision",
                    message="Accumulator precision too low for the configured supply",
                    details=f"Per-block increment would truncate to zero above {largest_supply:,} virtual shares"
                ))

        if sim.max_deposit > sim.initial_lp_balance:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="max_deposit exceeds initial_lp_balance; large random deposits will be rejected",
                details=f"max_deposit={sim.max_deposit:,}, initial_lp_balance={sim.initial_lp_balance:,}"
            ))

        for pool_id, pool in enumerate(self.config.pools):
            for entry in pool.multipliers:
                if entry.multiplier > 100 * scale:
                    warnings.append(ValidationWarning(
                        severity="warning",
                        category="bounds",
                        message=f"Pool {pool_id} multiplier above 100x for lock length {entry.lock_length}",
                        details=f"Multiplier: {entry.multiplier / scale:.1f}x"
                    ))
                if entry.lock_length > sim.blocks:
                    warnings.append(ValidationWarning(
                        severity="warning",
                        category="input",
                        message=f"Pool {pool_id} lock length {entry.lock_length} exceeds the simulated horizon",
                        details="Deposits with this lock cannot be withdrawn within the run"
                    ))

        if self.config.clock.automine and self.config.scenario.actions:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="automine with scripted actions shifts each action past its configured block",
            ))

        return warnings

    def check_snapshot(self, snapshot: LedgerSnapshot) -> List[ValidationWarning]:
        """
        Check a ledger snapshot for issues.

        Args:
            snapshot: Ledger state at one block

        Returns:
            List of validation warnings
        """
        warnings = []

        is_valid, error_msg = snapshot.validate_non_negative()
        if not is_valid:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Negative value at block {snapshot.block}",
                details=error_msg
            ))

        is_valid, error_msg = snapshot.validate_conservation()
        if not is_valid:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Conservation law violated",
                details=error_msg
            ))

        if snapshot.reward_reserve < snapshot.total_pending:
            warnings.append(ValidationWarning(
                severity="warning",
                category="sustainability",
                message=f"Pending rewards exceed the reward reserve at block {snapshot.block}",
                details=f"Pending: {snapshot.total_pending:,}, reserve: {snapshot.reward_reserve:,}"
            ))

        return warnings


def validate_simulation_results(config: Config, snapshots: List[LedgerSnapshot]) -> List[ValidationWarning]:
    """
    Validate complete simulation results.

    Args:
        config: Simulation configuration
        snapshots: Ledger snapshots over time

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(config)
    warnings = []

    warnings.extend(checker.check_config_inputs())

    # Check a sample of snapshots to avoid too many warnings
    sample_indices = list(range(0, len(snapshots), max(1, len(snapshots) // 10)))
    sample_indices.append(len(snapshots) - 1)

    for i in sorted(set(sample_indices)):
        if 0 <= i < len(snapshots):
            warnings.extend(checker.check_snapshot(snapshots[i]))

    if snapshots:
        final = snapshots[-1]
        initial_reserve = config.rewards.initial_reserve
        if initial_reserve > 0 and final.reward_reserve < initial_reserve // 10:
            warnings.append(ValidationWarning(
                severity="warning",
                category="sustainability",
                message="Reward reserve below 10% of initial value",
                details=f"Final reserve: {final.reward_reserve:,} ({final.reward_reserve / initial_reserve * 100:.1f}% remaining)"
            ))

    return warnings
