"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Constants(BaseModel):
    """Fixed-point constants."""
    scale_factor: int = Field(gt=0, default=10_000, description="Multiplier value meaning 1.0x")
    acc_reward_precision: int = Field(gt=0, default=10 ** 23, description="Fixed-point scale of acc_reward_per_share")


class Rewards(BaseModel):
    """Emission parameters."""
    reward_per_block: int = Field(ge=0, description="Reward token units emitted per block across all pools")
    initial_reserve: int = Field(ge=0, description="Reward tokens minted to the ledger at start")
    reward_token: str = Field(default="TRIBE", min_length=1, description="Reward token symbol")


class Clock(BaseModel):
    """Block clock parameters."""
    start_block: int = Field(ge=0, default=0, description="Block number at start")
    automine: bool = Field(default=False, description="Mine one block per mutating operation")


class Roles(BaseModel):
    """Role assignments for the authorization gate."""
    governors: List[str] = Field(min_length=1, description="Accounts with governor rights")
    guardians: List[str] = Field(default_factory=list, description="Accounts allowed to pause and reset rewards")
    pcv_controllers: List[str] = Field(default_factory=list, description="Accounts allowed to sweep reserve ratios")
    treasury: str = Field(default="core", min_length=1, description="Destination of governor reward sweeps")
    ledger_address: str = Field(default="staking_ledger", min_length=1, description="Custody account of the ledger")


class Logging(BaseModel):
    """Logging parameters."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Log level")

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        """Accept lowercase level names."""
        return v.upper() if isinstance(v, str) else v


class MultiplierSpec(BaseModel):
    """One lock length / multiplier entry."""
    lock_length: int = Field(ge=0, description="Lock length in blocks")
    multiplier: int = Field(gt=0, description="Reward multiplier scaled by scale_factor")


class PoolSpec(BaseModel):
    """Pool created at start."""
    lp_token: str = Field(min_length=1, description="Liquidity token symbol staked in the pool")
    alloc_weight: int = Field(gt=0, description="Allocation weight")
    multipliers: List[MultiplierSpec] = Field(min_length=1, description="Lock length multipliers")

    @field_validator("multipliers")
    @classmethod
    def unique_lock_lengths(cls, v):
        """Reject duplicate lock lengths."""
        lengths = [entry.lock_length for entry in v]
        if len(lengths) != len(set(lengths)):
            raise ValueError(f"duplicate lock lengths in multiplier table: {sorted(lengths)}")
        return v


class Simulation(BaseModel):
    """Random workload parameters."""
    blocks: int = Field(gt=0, description="Blocks to simulate")
    stakers: int = Field(gt=0, description="Number of simulated stakers")
    random_seed: int = Field(description="Random seed for reproducibility")
    initial_lp_balance: int = Field(gt=0, description="Liquidity tokens minted to each staker per pool token")
    min_deposit: int = Field(gt=0, description="Smallest random deposit")
    max_deposit: int = Field(gt=0, description="Largest random deposit")
    deposit_probability: float = Field(ge=0, le=1, description="Per staker per block chance of depositing")
    harvest_probability: float = Field(ge=0, le=1, description="Per staker per block chance of harvesting")
    withdraw_probability: float = Field(ge=0, le=1, description="Per staker per block chance of withdrawing all")
    emergency_probability: float = Field(ge=0, le=1, default=0.0, description="Per staker per block chance of emergency exit")

    @model_validator(mode='after')
    def validate_workload(self):
        """Ensure deposit bounds are ordered and probabilities sum to at most 1."""
        if self.min_deposit > self.max_deposit:
            raise ValueError(
                f"min_deposit ({self.min_deposit}) must not exceed max_deposit ({self.max_deposit})"
            )
        total = (
            self.deposit_probability +
            self.harvest_probability +
            self.withdraw_probability +
            self.emergency_probability
        )
        if total > 1.0 + 1e-9:
            raise ValueError(f"Action probabilities should sum to <= 1.0, got {total:.3f}")
        return self


ActionName = Literal[
    "deposit",
    "withdraw_from_deposit",
    "harvest",
    "withdraw_all_and_harvest",
    "emergency_withdraw",
    "update_pool",
    "mass_update_pools",
    "add_pool",
    "set_pool",
    "add_pool_multiplier",
    "reset_rewards",
    "lock_pool",
    "unlock_pool",
    "update_block_reward",
    "governor_withdraw_reward",
    "pause",
    "unpause",
]


class ScenarioAction(BaseModel):
    """One scripted ledger call."""
    block: int = Field(ge=0, description="Block at which the action runs")
    action: ActionName = Field(description="Ledger operation")
    actor: str = Field(min_length=1, description="Calling account")
    pool_id: int = Field(ge=0, default=0, description="Target pool")
    amount: int = Field(ge=0, default=0, description="Token amount")
    lock_length: int = Field(ge=0, default=0, description="Lock length for deposits and multipliers")
    slot: int = Field(ge=0, default=0, description="Deposit slot index")
    recipient: Optional[str] = Field(default=None, description="Payout account (defaults to actor)")
    alloc_weight: int = Field(ge=0, default=0, description="Allocation weight for add_pool/set_pool")
    multiplier: int = Field(ge=0, default=0, description="Multiplier for add_pool_multiplier")
    with_update: bool = Field(default=False, description="Mass-update pools on set_pool")
    lp_token: Optional[str] = Field(default=None, description="Liquidity token for add_pool")
    multipliers: List[MultiplierSpec] = Field(default_factory=list, description="Table for add_pool")

    @model_validator(mode='after')
    def validate_add_pool_token(self):
        """add_pool needs a liquidity token to stake."""
        if self.action == "add_pool" and not self.lp_token:
            raise ValueError(f"add_pool at block {self.block} requires lp_token")
        return self


class Scenario(BaseModel):
    """Scripted actions; an empty list runs the random workload instead."""
    actions: List[ScenarioAction] = Field(default_factory=list)


class Config(BaseModel):
    """Complete configuration for the staking ledger simulator."""
    constants: Constants = Field(default_factory=Constants)
    rewards: Rewards
    clock: Clock = Field(default_factory=Clock)
    roles: Roles
    logging: Logging = Field(default_factory=Logging)
    pools: List[PoolSpec] = Field(default_factory=list)
    simulation: Simulation
    scenario: Scenario = Field(default_factory=Scenario)

    @model_validator(mode='after')
    def validate_multipliers_against_scale(self):
        """Zero-lock entries must equal the scale factor; others must not fall below it."""
        scale = self.constants.scale_factor
        for pool_id, pool in enumerate(self.pools):
            for entry in pool.multipliers:
                if entry.lock_length == 0 and entry.multiplier != scale:
                    raise ValueError(
                        f"pool {pool_id}: lock length 0 must use multiplier {scale}, got {entry.multiplier}"
                    )
                if entry.lock_length > 0 and entry.multiplier < scale:
                    raise ValueError(
                        f"pool {pool_id}: multiplier {entry.multiplier} for lock length "
                        f"{entry.lock_length} is below scale factor {scale}"
                    )
        return self

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
