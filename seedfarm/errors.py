from __future__ import annotations


class SeedFarmError(Exception):
    """Base class for engine faults."""


class ConfigurationError(SeedFarmError, ValueError):
    """The static catalog is inconsistent (unknown ids, broken chain, bad curves)."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            "Invalid GameDefinition:\n" + "\n".join(f"  - {e}" for e in self.errors)
        )


class CheckpointError(SeedFarmError, ValueError):
    """Checkpoint data is missing required fields or holds malformed numbers."""
