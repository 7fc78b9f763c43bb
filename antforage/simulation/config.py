"""Config — load simulation parameters from YAML files.

All tunable constants (world size, trail decay rates and caps, sensing
radii, role profiles) live in YAML and are parsed into typed dataclasses
here.  Decay rates and the deposit cap are tuning knobs, not contracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from antforage.colony.roles import DEFAULT_ROLES, RoleProfile
from antforage.errors import ConfigurationError
from antforage.foraging.decision import DecisionParams
from antforage.pheromones.fields import PheromoneField, TrailType

_TRAIL_KEYS = frozenset({"decay_rate", "max_strength", "base_strength"})
_ROLE_KEYS = frozenset(
    f.name for f in fields(RoleProfile) if f.name != "name"
)


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        world_width: World width in world units.
        world_height: World height in world units.
        cell_size: World units per pheromone grid cell.
        gradient_headings: Directions in the gradient sampling ring.
        gradient_sample_radius: Distance at which gradients are sampled.
        decay_interval: Ticks between two decay steps.
        resource_scan_radius: Radius of the resource refresh around
            each colony.
        agent_resource_radius: Radius within which resource nodes are
            handed to an ant's decision.
        pickup_range: Distance within which a node can be harvested.
        colony_radius: Distance from the nest counted as "at colony".
        peer_radius: Radius within which peers are handed to a decision.
        separation_radius: Peers closer than this push an ant away.
        food_noise_floor: Food trail strength ignored as noise.
        home_noise_floor: Home trail strength ignored as noise.
        heading_jitter: Largest per-tick turn (radians) of an exploring ant.
        heading_reset_chance: Per-tick chance an exploring ant picks a
            fresh random heading.
        pickup_trail_strength: FOOD_TRAIL laid at a node on pickup.
        dropoff_trail_strength: HOME_TRAIL laid at the nest on dropoff.
        colony_trail_strength: HOME_TRAIL laid when a colony registers.
        history_size: Tick summaries kept in the rolling history.
        decision_workers: Threads computing decisions (1 = inline).
        prune_depleted: Drop depleted nodes from the resource cache.
        trails: Per-trail overrides (``decay_rate``, ``max_strength``,
            ``base_strength``) keyed by trail name.
        roles: Per-role overrides keyed by role name.
    """

    seed: int = 42
    world_width: float = 1000.0
    world_height: float = 1000.0
    cell_size: float = 16.0
    gradient_headings: int = 8
    gradient_sample_radius: float = 16.0
    decay_interval: int = 1

    resource_scan_radius: float = 200.0
    agent_resource_radius: float = 100.0
    pickup_range: float = 5.0
    colony_radius: float = 15.0
    peer_radius: float = 50.0
    separation_radius: float = 10.0

    food_noise_floor: float = 10.0
    home_noise_floor: float = 5.0
    heading_jitter: float = 0.25
    heading_reset_chance: float = 0.05
    pickup_trail_strength: float = 150.0
    dropoff_trail_strength: float = 100.0
    colony_trail_strength: float = 255.0

    history_size: int = 100
    decision_workers: int = 1
    prune_depleted: bool = False

    trails: dict[str, dict[str, float]] = field(default_factory=dict)
    roles: dict[str, dict[str, float]] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Unknown keys are rejected so typos do not silently fall back to
        defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            A validated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigurationError: If a key or value is invalid.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            msg = f"{path}: top level must be a mapping"
            raise ConfigurationError(msg)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"{path}: unknown config keys {unknown}"
            raise ConfigurationError(msg)

        config = cls(**data)
        config.validate()
        return config

    def validate(self) -> None:
        """Check every value; fail fast before any tick runs.

        Raises:
            ConfigurationError: On the first invalid value found.
        """
        positive = (
            "world_width",
            "world_height",
            "cell_size",
            "gradient_sample_radius",
            "resource_scan_radius",
            "agent_resource_radius",
            "colony_radius",
        )
        for name in positive:
            if not getattr(self, name) > 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ConfigurationError(msg)
        non_negative = (
            "pickup_range",
            "peer_radius",
            "separation_radius",
            "food_noise_floor",
            "home_noise_floor",
            "heading_jitter",
            "pickup_trail_strength",
            "dropoff_trail_strength",
            "colony_trail_strength",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                msg = f"{name} must be >= 0, got {getattr(self, name)}"
                raise ConfigurationError(msg)
        if not 0.0 <= self.heading_reset_chance <= 1.0:
            msg = f"heading_reset_chance must be in [0, 1], got {self.heading_reset_chance}"
            raise ConfigurationError(msg)
        if self.gradient_headings not in (8, 16):
            msg = f"gradient_headings must be 8 or 16, got {self.gradient_headings}"
            raise ConfigurationError(msg)
        for name in ("decay_interval", "history_size", "decision_workers"):
            if getattr(self, name) < 1:
                msg = f"{name} must be >= 1, got {getattr(self, name)}"
                raise ConfigurationError(msg)

        for trail_name, overrides in self.trails.items():
            self._trail_type(trail_name)
            bad = sorted(set(overrides) - _TRAIL_KEYS)
            if bad:
                msg = f"trails.{trail_name}: unknown keys {bad}"
                raise ConfigurationError(msg)
        for role_name, overrides in self.roles.items():
            bad = sorted(set(overrides) - _ROLE_KEYS)
            if bad:
                msg = f"roles.{role_name}: unknown keys {bad}"
                raise ConfigurationError(msg)
        for profile in self.role_profiles().values():
            if not (profile.speed > 0 and profile.carry_capacity >= 1):
                msg = f"role {profile.name}: speed and carry_capacity must be positive"
                raise ConfigurationError(msg)

    @staticmethod
    def _trail_type(name: str) -> TrailType:
        try:
            return TrailType.parse(name)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    def build_field(self) -> PheromoneField:
        """Create the pheromone field with per-trail overrides applied.

        Raises:
            ConfigurationError: If dimensions or trail settings are invalid.
        """
        pheromones = PheromoneField(
            width=self.world_width,
            height=self.world_height,
            cell_size=self.cell_size,
            headings=self.gradient_headings,
            decay_interval=self.decay_interval,
        )
        for trail_name, overrides in self.trails.items():
            pheromones.configure_layer(
                self._trail_type(trail_name),
                decay_rate=overrides.get("decay_rate"),
                max_strength=overrides.get("max_strength"),
                base_strength=overrides.get("base_strength"),
            )
        return pheromones

    def role_profiles(self) -> dict[str, RoleProfile]:
        """Return the default roles merged with the configured overrides."""
        profiles = dict(DEFAULT_ROLES)
        for name, overrides in self.roles.items():
            key = name.lower()
            base = profiles.get(key, RoleProfile(name=key))
            profiles[key] = base.with_overrides(overrides)
        return profiles

    def decision_params(self) -> DecisionParams:
        """Return the decision tuning constants derived from this config."""
        return DecisionParams(
            pickup_range=self.pickup_range,
            colony_radius=self.colony_radius,
            separation_radius=self.separation_radius,
            food_noise_floor=self.food_noise_floor,
            home_noise_floor=self.home_noise_floor,
            heading_jitter=self.heading_jitter,
            heading_reset_chance=self.heading_reset_chance,
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the configuration as plain data (for logging/export)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
