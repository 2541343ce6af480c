"""Named weighting schemes applied when aggregating criterion scores."""
from __future__ import annotations

import copy
import logging
import re
import threading
from dataclasses import dataclass, field

from qolindex.score.criteria import CRITERIA, CriterionId, get_criterion

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "equal"

_CLIMATE = [c for c, cfg in CRITERIA.items() if cfg.kind == "climate"]


@dataclass(frozen=True)
class WeightingScheme:
    id: str
    name: str
    description: str
    weights: dict[CriterionId, float] = field(default_factory=dict)

    def weight_for(self, criterion: CriterionId) -> float:
        return self.weights.get(criterion, 1.0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "weights": {c.value: w for c, w in self.weights.items()},
        }


def _equal_weights() -> dict[CriterionId, float]:
    return {c: 1.0 for c in CRITERIA}


def _builtin_schemes() -> dict[str, WeightingScheme]:
    environment = {c: 1.5 for c in _CLIMATE}
    environment[CriterionId.GDP_PER_CAPITA] = 0.8
    environment[CriterionId.FOOD_SECURITY] = 1.0

    economic = {c: 0.8 for c in _CLIMATE}
    economic[CriterionId.GDP_PER_CAPITA] = 2.0
    economic[CriterionId.FOOD_SECURITY] = 1.5

    return {
        DEFAULT_SCHEME: WeightingScheme(
            id=DEFAULT_SCHEME,
            name="Equal Weighting",
            description="All criteria weighted equally",
            weights=_equal_weights(),
        ),
        "environmentFocused": WeightingScheme(
            id="environmentFocused",
            name="Environment Focused",
            description="Higher weight on environmental factors",
            weights=environment,
        ),
        "economicFocused": WeightingScheme(
            id="economicFocused",
            name="Economic Focused",
            description="Higher weight on economic factors",
            weights=economic,
        ),
    }


def scheme_id_for(name: str) -> str:
    """'My Custom  Scheme' -> 'my_custom_scheme'."""
    return re.sub(r"\s+", "_", name.strip().lower())


class WeightingRegistry:
    """Registry of weighting schemes. The "equal" scheme always exists."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._schemes: dict[str, WeightingScheme] = _builtin_schemes()

    def resolve(self, name: str | None) -> WeightingScheme:
        """Return the named scheme, falling back to "equal" for unknown names."""
        with self._lock:
            scheme = self._schemes.get(name or DEFAULT_SCHEME)
            if scheme is not None:
                return scheme
            fallback = self._schemes[DEFAULT_SCHEME]
        logger.warning("Unknown weighting scheme %r, falling back to %r", name, DEFAULT_SCHEME)
        return fallback

    def register(self, name: str, description: str, weights: dict[str, float]) -> str:
        """Create (or replace) a custom scheme and return its id.

        Weights are merged over the equal weights, so criteria left out
        keep a weight of 1.0.
        """
        scheme_id = scheme_id_for(name)
        if not scheme_id:
            raise ValueError("Weighting scheme name must not be empty")
        if scheme_id == DEFAULT_SCHEME:
            raise ValueError(f"Cannot replace the {DEFAULT_SCHEME!r} weighting scheme")

        merged = _equal_weights()
        for key, weight in weights.items():
            criterion = get_criterion(key).id
            if weight <= 0:
                raise ValueError(f"Weight for {criterion.value} must be positive, got {weight}")
            merged[criterion] = float(weight)

        scheme = WeightingScheme(id=scheme_id, name=name, description=description, weights=merged)
        with self._lock:
            self._schemes[scheme_id] = scheme
        logger.info("Registered weighting scheme %s", scheme_id)
        return scheme_id

    def snapshot(self) -> dict[str, WeightingScheme]:
        with self._lock:
            return copy.deepcopy(self._schemes)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._schemes
