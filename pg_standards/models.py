"""Data models for validation, health and repair results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class HealthStatus(enum.Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def from_score(cls, score: int) -> HealthStatus:
        """Classify a 0-100 score with the 80/60 thresholds."""
        if score >= 80:
            return cls.HEALTHY
        if score >= 60:
            return cls.WARNING
        return cls.CRITICAL


class FindingKind(enum.Enum):
    SEQUENCE_NEEDS_RESET = "sequence_needs_reset"
    MISSING_TRIGGER = "missing_trigger"


class TriggerOutcome(enum.Enum):
    CREATED = "created"
    ALREADY_PRESENT = "already_present"
    NOT_APPLICABLE = "not_applicable"


@dataclass
class ValidationRule:
    """Per-table validation requirements, keyed by glob pattern in config."""

    required_columns: set[str] = field(default_factory=set)
    required_indexes: set[str] = field(default_factory=set)
    required_constraints: dict[str, str] = field(default_factory=dict)
    column_types: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (
            self.required_columns
            or self.required_indexes
            or self.required_constraints
            or self.column_types
        )


@dataclass(frozen=True)
class Finding:
    """A best-practice deviation that the repair engine knows how to fix."""

    kind: FindingKind
    table: str
    detail: str = ""

    @property
    def message(self) -> str:
        if self.kind == FindingKind.SEQUENCE_NEEDS_RESET:
            return f"Sequence '{self.detail}' may need to be reset"
        return "Table has 'updated_at' column but missing update trigger"


@dataclass
class ValidationResult:
    table: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)

    def add_finding(self, finding: Finding) -> None:
        self.findings.append(finding)
        self.warnings.append(finding.message)


@dataclass
class StructureReport:
    tables_checked: int = 0
    results: dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def errors(self) -> dict[str, list[str]]:
        return {t: r.errors for t, r in self.results.items() if r.errors}

    @property
    def warnings(self) -> dict[str, list[str]]:
        return {t: r.warnings for t, r in self.results.items() if r.warnings}

    @property
    def findings(self) -> list[Finding]:
        all_findings = []
        for r in self.results.values():
            all_findings.extend(r.findings)
        return all_findings

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class HealthCheckResult:
    status: HealthStatus
    message: str
    score: int
    details: dict[str, Any] | None = None
    recommendation: str | None = None


@dataclass
class OverallHealth:
    overall_score: int
    checks: dict[str, HealthCheckResult] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class OperationStat:
    count: int = 0
    total_time: float = 0.0
    average_time: float = 0.0
    last_time: float = 0.0


@dataclass(frozen=True)
class SequenceState:
    sequence_name: str
    table_name: str
    column_name: str | None
    last_value: int
    sequence_schema: str = "public"


@dataclass
class SequenceFixResult:
    sequences_fixed: list[str] = field(default_factory=list)
    time_taken: float = 0.0


@dataclass
class TriggerFixResult:
    outcomes: dict[str, TriggerOutcome] = field(default_factory=dict)
    time_taken: float = 0.0

    @property
    def triggers_created(self) -> list[str]:
        return [t for t, o in self.outcomes.items() if o == TriggerOutcome.CREATED]

    @property
    def triggers_skipped(self) -> list[str]:
        return [t for t, o in self.outcomes.items() if o != TriggerOutcome.CREATED]


@dataclass
class BestPracticesResult:
    tables_processed: int = 0
    sequences_fixed: list[str] = field(default_factory=list)
    triggers_created: list[str] = field(default_factory=list)
    dry_run: bool = False


@dataclass(frozen=True)
class EventTriggerStatus:
    enabled: bool
    message: str


@dataclass
class MigrationArtifact:
    path: str
    content: str
    tables: list[str] = field(default_factory=list)
    created_at: datetime | None = None
