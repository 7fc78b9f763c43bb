"""Errors — exception taxonomy for the foraging core.

Out-of-bounds coordinates are deliberately *not* represented here: the
pheromone field treats them as a silent no-op or empty result.  Capacity
overruns are clamped rather than raised.
"""

from __future__ import annotations


class ForagingError(Exception):
    """Base class for every error raised by ``antforage``."""


class ConfigurationError(ForagingError):
    """Invalid world dimensions, cell size, or tuning constants.

    Raised at construction time only, before any tick runs.
    """


class AgentProcessingError(ForagingError):
    """A single agent could not be processed this tick.

    Attributes:
        agent_id: The agent that failed (``None`` if unknown).
    """

    def __init__(self, message: str, agent_id: str | None = None) -> None:
        super().__init__(message)
        self.agent_id = agent_id


class RecordValidationError(AgentProcessingError):
    """A record handed over by an external collaborator is malformed."""


class UnknownColonyError(ForagingError):
    """A colony id the colony gateway does not know about."""


class TickInProgressError(ForagingError):
    """A tick was started while another tick is still running."""
