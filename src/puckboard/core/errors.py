"""Typed failures raised by the recalculation engine.

Every failure names the scope it happened in so the finalization workflow
can tell which round or season to retry. None of these are retried
internally; previously persisted rows are left untouched.
"""

from __future__ import annotations


class RecalcError(Exception):
    """Base class for recompute failures."""

    kind = "recalc_error"

    def __init__(
        self,
        message: str,
        *,
        scope: str,
        scope_id: str,
        game_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.scope = scope
        self.scope_id = scope_id
        self.game_id = game_id

    def to_dict(self) -> dict[str, str | None]:
        return {
            "error": self.kind,
            "detail": self.message,
            "scope": self.scope,
            "scope_id": self.scope_id,
            "game_id": self.game_id,
        }


class ConfigurationMissing(RecalcError):
    """The round (or season) has no resolvable scoring configuration."""

    kind = "configuration_missing"


class InvalidGameState(RecalcError):
    """A game counted as completed lacks required values or holds negative ones."""

    kind = "invalid_game_state"


class ConcurrentRecalcConflict(RecalcError):
    """Another recompute holds the scope lock; retry the whole recompute."""

    kind = "concurrent_recalc_conflict"


class PersistenceFailure(RecalcError):
    """The final write failed and was rolled back."""

    kind = "persistence_failure"
