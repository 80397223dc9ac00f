"""Store migration DTOs."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass
class MigrationResult:
    """Result of copying permission data from one store to another."""

    started_at: datetime
    completed_at: datetime | None = None
    is_successful: bool = False
    error_message: str | None = None
    failed_phase: str | None = None
    warnings: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def duration(self) -> timedelta | None:
        if self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    @property
    def summary(self) -> str:
        if not self.is_successful:
            return f"Migration failed in phase '{self.failed_phase}': {self.error_message}"
        seconds = self.duration.total_seconds() if self.duration else 0.0
        migrated = ", ".join(f"{n} {phase}" for phase, n in self.counts.items())
        return f"Migration completed successfully in {seconds:.1f}s. Migrated {migrated}."


@dataclass
class MigrationValidationResult:
    """Record count comparison between source and target stores."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    source_counts: dict[str, int] = field(default_factory=dict)
    target_counts: dict[str, int] = field(default_factory=dict)

    @property
    def summary(self) -> str:
        if self.is_valid:
            return "Migration validation passed - all record counts match"
        return f"Migration validation failed: {', '.join(self.errors)}"
