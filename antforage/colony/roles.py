"""Roles — per-caste foraging parameters.

A role profile fixes how fast a forager moves, how much it carries, how
far it senses resources, how strongly its breadcrumbs smell, and how
eager it is to explore rather than exploit known trails.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RoleProfile:
    """Foraging parameters shared by every ant of one role.

    Attributes:
        name: Role key as stored on ant records (``"worker"``, ...).
        speed: Maximum distance moved per tick, in world units.
        carry_capacity: Units of resource the ant can carry.
        sense_radius: Distance at which resource nodes are noticed.
        pheromone_multiplier: Scales the strength of laid breadcrumbs.
        exploration_tendency: Weight of the random exploration term
            (0.0-1.0); higher means more scouting.
    """

    name: str
    speed: float = 2.0
    carry_capacity: int = 5
    sense_radius: float = 30.0
    pheromone_multiplier: float = 1.0
    exploration_tendency: float = 0.3

    def with_overrides(self, overrides: dict[str, float]) -> RoleProfile:
        """Return a copy with the given fields replaced."""
        known = {k: v for k, v in overrides.items() if k != "name"}
        if "carry_capacity" in known:
            known["carry_capacity"] = int(known["carry_capacity"])
        return replace(self, **known)


DEFAULT_ROLES: dict[str, RoleProfile] = {
    "worker": RoleProfile(
        name="worker",
        speed=2.0,
        carry_capacity=5,
        sense_radius=30.0,
        pheromone_multiplier=1.0,
        exploration_tendency=0.3,
    ),
    "scout": RoleProfile(
        name="scout",
        speed=3.0,
        carry_capacity=2,
        sense_radius=50.0,
        pheromone_multiplier=1.5,
        exploration_tendency=0.7,
    ),
}


def resolve_role(roles: dict[str, RoleProfile], name: str) -> RoleProfile:
    """Look up a role, falling back to ``worker`` for unknown names."""
    return roles.get(name.lower(), roles.get("worker", DEFAULT_ROLES["worker"]))
