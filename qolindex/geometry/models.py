"""Validation findings, per-feature results and the batch report."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class IssueType(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class IssueCategory(str, Enum):
    STRUCTURE = "STRUCTURE"
    GEOMETRY = "GEOMETRY"
    COORDINATES = "COORDINATES"
    METRICS = "METRICS"
    COMPLEXITY = "COMPLEXITY"
    SPECIAL_CASE = "SPECIAL_CASE"
    TOPOLOGY = "TOPOLOGY"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    COLLECTION = "COLLECTION"


@dataclass(frozen=True)
class Issue:
    type: IssueType
    category: IssueCategory
    message: str
    feature: str | None = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "category": self.category.value,
            "message": self.message,
            "feature": self.feature,
        }


@dataclass
class GeometryMetrics:
    area_km2: float | None = None
    perimeter_km: float | None = None
    vertex_count: int = 0
    complexity_ratio: float | None = None
    average_segment_length: float = 0.0
    coordinate_validity_rate: float | None = None
    total_coordinates: int = 0
    invalid_coordinates: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GeometryValidationResult:
    country_code: str | None
    country_name: str | None
    geometry_type: str | None = None
    issues: list[Issue] = field(default_factory=list)
    metrics: GeometryMetrics = field(default_factory=GeometryMetrics)

    @property
    def is_valid(self) -> bool:
        """Valid iff no ERROR was recorded; warnings and info are advisory."""
        return not any(issue.type is IssueType.ERROR for issue in self.issues)

    def add(self, issue_type: IssueType, category: IssueCategory, message: str) -> Issue:
        issue = Issue(type=issue_type, category=category, message=message, feature=self.country_code)
        self.issues.append(issue)
        return issue

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "country_code": self.country_code,
            "country_name": self.country_name,
            "geometry_type": self.geometry_type,
            "issues": [i.to_dict() for i in self.issues],
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class FeatureOutcome:
    """Outcome for one feature in a batch.

    ``diagnostic`` is set when validation itself could not run for the
    feature; the result then carries that diagnostic as its ERROR issue.
    """
    index: int
    result: GeometryValidationResult
    diagnostic: Issue | None = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


@dataclass(frozen=True)
class Recommendation:
    priority: str  # HIGH | MEDIUM
    category: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BatchReport:
    total_features: int = 0
    valid_features: int = 0
    invalid_features: int = 0
    issues: list[Issue] = field(default_factory=list)
    statistics: dict = field(default_factory=dict)
    recommendations: list[Recommendation] = field(default_factory=list)
    outcomes: list[FeatureOutcome] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "total_features": self.total_features,
            "valid_features": self.valid_features,
            "invalid_features": self.invalid_features,
            "issues": [i.to_dict() for i in self.issues],
            "statistics": self.statistics,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "failed_features": [o.index for o in self.outcomes if not o.ok],
        }
