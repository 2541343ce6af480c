"""GeoJSON country border validation.

Each feature goes through a fixed sequence of checks. Every check runs for
every feature and only appends issues, so the full issue set is always
reported. A check that blows up is recorded as a VALIDATION_FAILURE error on
that feature and the remaining checks still run; one bad feature never
aborts a batch.
"""
from __future__ import annotations

import json
import logging
import math
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterator

from shapely.errors import GEOSException
from shapely.geometry import shape
from shapely.validation import explain_validity

from qolindex.geometry import constants as C
from qolindex.geometry.models import (
    BatchReport,
    FeatureOutcome,
    GeometryValidationResult,
    Issue,
    IssueCategory,
    IssueType,
    Recommendation,
)
from qolindex.geometry.sphere import geometry_area, geometry_length

logger = logging.getLogger(__name__)

ERROR, WARNING, INFO = IssueType.ERROR, IssueType.WARNING, IssueType.INFO


def _is_coordinate_value(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _valid_pair(coord: Any) -> bool:
    return (
        isinstance(coord, (list, tuple))
        and len(coord) >= 2
        and _is_coordinate_value(coord[0])
        and _is_coordinate_value(coord[1])
    )


def decimal_places(value: float) -> int:
    """Decimal digits in the shortest repr of a number (1.25 -> 2, 3 -> 0)."""
    if isinstance(value, int):
        return 0
    exponent = Decimal(repr(value)).as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def _polygonal(geometry: Any) -> bool:
    return (
        isinstance(geometry, dict)
        and geometry.get("type") in C.POLYGONAL_TYPES
        and isinstance(geometry.get("coordinates"), list)
    )


def _iter_polygons(geometry: dict) -> Iterator[tuple[str, Any]]:
    """Yield (message prefix, polygon rings) for a Polygon or MultiPolygon."""
    if geometry["type"] == "Polygon":
        yield "", geometry["coordinates"]
    else:
        for index, polygon in enumerate(geometry["coordinates"]):
            yield f"Polygon {index}: ", polygon


def extract_coordinates(geometry: Any) -> list[Any]:
    """Every coordinate of every ring, flattened. Malformed parts are skipped."""
    if not _polygonal(geometry):
        return []
    coords: list[Any] = []
    for _, rings in _iter_polygons(geometry):
        if not isinstance(rings, list):
            continue
        for ring in rings:
            if isinstance(ring, list):
                coords.extend(ring)
    return coords


class GeometryValidator:
    """Validates country features and keeps the latest result per ISO_A3 code."""

    def __init__(self) -> None:
        self._results: dict[str, GeometryValidationResult] = {}
        self._checks: list[Callable[[dict, GeometryValidationResult], None]] = [
            self._check_structure,
            self._check_geometry_type,
            self._check_rings,
            self._check_coordinates,
            self._check_area_and_perimeter,
            self._check_complexity,
            self._check_special_cases,
            self._check_topology,
        ]

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def validate_borders(self, collection: Any) -> BatchReport:
        """Validate every feature of a FeatureCollection and build the report."""
        self._results = {}
        report = BatchReport()

        features = collection.get("features") if isinstance(collection, dict) else None
        if not isinstance(features, list):
            report.issues.append(Issue(
                type=ERROR,
                category=IssueCategory.COLLECTION,
                message="Invalid or missing GeoJSON data structure",
            ))
            report.statistics = self.generate_statistics()
            return report

        report.total_features = len(features)
        logger.info("Validating %d border features", len(features))

        for index, feature in enumerate(features):
            outcome = self._validate_guarded(index, feature)
            report.outcomes.append(outcome)
            result = outcome.result

            if result.is_valid:
                report.valid_features += 1
            else:
                report.invalid_features += 1
                report.issues.extend(result.issues)

            if result.country_code:
                self._results[result.country_code] = result

        report.statistics = self.generate_statistics()
        report.recommendations = self.generate_recommendations(report)
        logger.info(
            "Border validation complete: %d valid, %d invalid",
            report.valid_features, report.invalid_features,
        )
        return report

    def _validate_guarded(self, index: int, feature: Any) -> FeatureOutcome:
        try:
            return FeatureOutcome(index=index, result=self.validate_feature(feature))
        except Exception as e:
            logger.exception("Validation of feature %d failed", index)
            properties = feature.get("properties") if isinstance(feature, dict) else None
            properties = properties if isinstance(properties, dict) else {}
            result = GeometryValidationResult(
                country_code=properties.get("ISO_A3"),
                country_name=properties.get("NAME"),
            )
            diagnostic = result.add(ERROR, IssueCategory.VALIDATION_FAILURE, f"Validation failed: {e}")
            return FeatureOutcome(index=index, result=result, diagnostic=diagnostic)

    # ------------------------------------------------------------------
    # Single feature
    # ------------------------------------------------------------------

    def validate_feature(self, feature: Any) -> GeometryValidationResult:
        feature = feature if isinstance(feature, dict) else {"_raw": feature}
        properties = feature.get("properties")
        properties = properties if isinstance(properties, dict) else {}
        geometry = feature.get("geometry")

        result = GeometryValidationResult(
            country_code=properties.get("ISO_A3"),
            country_name=properties.get("NAME"),
            geometry_type=geometry.get("type") if isinstance(geometry, dict) else None,
        )

        for check in self._checks:
            try:
                check(feature, result)
            except Exception as e:
                logger.warning("%s failed for %s: %s", check.__name__, result.country_code, e)
                result.add(ERROR, IssueCategory.VALIDATION_FAILURE, f"Validation failed: {e}")

        return result

    def _check_structure(self, feature: dict, result: GeometryValidationResult) -> None:
        if feature.get("type") != "Feature":
            result.add(ERROR, IssueCategory.STRUCTURE, "Invalid feature type")
        properties = feature.get("properties")
        if not isinstance(properties, dict):
            result.add(ERROR, IssueCategory.STRUCTURE, "Missing properties object")
        if not result.country_code:
            result.add(ERROR, IssueCategory.STRUCTURE, "Missing ISO_A3 country code")
        if not isinstance(feature.get("geometry"), dict):
            result.add(ERROR, IssueCategory.STRUCTURE, "Missing geometry object")

    def _check_geometry_type(self, feature: dict, result: GeometryValidationResult) -> None:
        geometry = feature.get("geometry")
        if not isinstance(geometry, dict):
            return  # reported by the structure check

        geometry_type = geometry.get("type")
        if not geometry_type:
            result.add(ERROR, IssueCategory.GEOMETRY, "Missing geometry type")
        elif geometry_type not in C.POLYGONAL_TYPES:
            result.add(
                ERROR, IssueCategory.GEOMETRY,
                f"Invalid geometry type: {geometry_type}. Expected Polygon or MultiPolygon",
            )
        elif not isinstance(geometry.get("coordinates"), list):
            result.add(ERROR, IssueCategory.GEOMETRY, "Missing or invalid coordinates array")

    def _check_rings(self, feature: dict, result: GeometryValidationResult) -> None:
        geometry = feature.get("geometry")
        if not _polygonal(geometry):
            return

        if not geometry["coordinates"]:
            kind = "polygon" if geometry["type"] == "Polygon" else "multi-polygon"
            result.add(ERROR, IssueCategory.COORDINATES, f"Invalid {kind} coordinates structure")
            return

        for prefix, rings in _iter_polygons(geometry):
            if not isinstance(rings, list) or not rings:
                result.add(ERROR, IssueCategory.COORDINATES, f"{prefix}Invalid polygon coordinates structure")
                continue
            for ring_index, ring in enumerate(rings):
                if not isinstance(ring, list) or len(ring) < 4:
                    result.add(
                        ERROR, IssueCategory.COORDINATES,
                        f"{prefix}Ring {ring_index} has insufficient coordinates (minimum 4 required)",
                    )
                    continue
                first, last = ring[0], ring[-1]
                if not (_valid_pair(first) and _valid_pair(last)):
                    continue  # reported by the coordinate check
                if first[0] != last[0] or first[1] != last[1]:
                    result.add(ERROR, IssueCategory.COORDINATES, f"{prefix}Ring {ring_index} is not closed")

    def _check_coordinates(self, feature: dict, result: GeometryValidationResult) -> None:
        coordinates = extract_coordinates(feature.get("geometry"))
        range_errors = 0
        invalid = 0
        imprecise = 0
        max_precision = 0

        def report(message: str) -> None:
            nonlocal range_errors
            range_errors += 1
            if range_errors <= C.MAX_COORDINATE_ERRORS:
                result.add(ERROR, IssueCategory.COORDINATES, message)

        for coord in coordinates:
            if not _valid_pair(coord):
                invalid += 1
                report(f"Malformed coordinate: {coord!r}")
                continue

            lon, lat = coord[0], coord[1]
            bad = False
            if lon < -180 or lon > 180:
                bad = True
                report(f"Invalid longitude: {lon} (must be between -180 and 180)")
            if lat < -90 or lat > 90:
                bad = True
                report(f"Invalid latitude: {lat} (must be between -90 and 90)")
            if bad:
                invalid += 1

            precision = max(decimal_places(lon), decimal_places(lat))
            if precision > C.COORDINATE_PRECISION:
                imprecise += 1
                max_precision = max(max_precision, precision)

        if imprecise:
            result.add(
                WARNING, IssueCategory.COORDINATES,
                f"High coordinate precision detected in {imprecise} coordinates "
                f"({max_precision} decimals)",
            )

        total = len(coordinates)
        result.metrics.total_coordinates = total
        result.metrics.invalid_coordinates = invalid
        result.metrics.coordinate_validity_rate = (total - invalid) / total * 100 if total else None

    def _check_area_and_perimeter(self, feature: dict, result: GeometryValidationResult) -> None:
        geometry = feature.get("geometry")
        if not _polygonal(geometry):
            return

        try:
            area = geometry_area(geometry) / 1_000_000
            perimeter = geometry_length(geometry) / 1000
        except (TypeError, ValueError, IndexError, KeyError) as e:
            result.add(ERROR, IssueCategory.METRICS, f"Failed to calculate area/perimeter: {e}")
            return
        if not (math.isfinite(area) and math.isfinite(perimeter)):
            result.add(ERROR, IssueCategory.METRICS, "Failed to calculate area/perimeter: non-finite result")
            return

        result.metrics.area_km2 = float(round(area))
        result.metrics.perimeter_km = float(round(perimeter))

        if area < C.MIN_AREA_KM2:
            result.add(WARNING, IssueCategory.METRICS, f"Very small area: {area:.2f} km²")
        if area > C.MAX_AREA_KM2:
            result.add(WARNING, IssueCategory.METRICS, f"Very large area: {area:.2f} km²")
        if perimeter < C.MIN_PERIMETER_KM:
            result.add(WARNING, IssueCategory.METRICS, f"Very small perimeter: {perimeter:.2f} km")

        # Perimeter relative to a circle of the same area
        circular_perimeter = 2 * math.sqrt(math.pi * area)
        result.metrics.complexity_ratio = perimeter / circular_perimeter if circular_perimeter > 0 else 0.0

    def _check_complexity(self, feature: dict, result: GeometryValidationResult) -> None:
        coordinates = extract_coordinates(feature.get("geometry"))
        result.metrics.vertex_count = len(coordinates)

        if len(coordinates) > C.MAX_VERTICES:
            result.add(
                WARNING, IssueCategory.COMPLEXITY,
                f"High vertex count: {len(coordinates)} (may impact performance)",
            )

        # Planar length in degrees between consecutive vertices
        points = [c for c in coordinates if _valid_pair(c)]
        segments = [
            math.hypot(points[i][0] - points[i - 1][0], points[i][1] - points[i - 1][1])
            for i in range(1, len(points))
        ]
        result.metrics.average_segment_length = sum(segments) / len(segments) if segments else 0.0

    def _check_special_cases(self, feature: dict, result: GeometryValidationResult) -> None:
        code = result.country_code
        if not code:
            return

        if code in C.ARCHIPELAGOS and result.geometry_type != "MultiPolygon":
            result.add(WARNING, IssueCategory.SPECIAL_CASE, "Archipelago country should use MultiPolygon geometry")
        if code in C.ENCLAVES:
            result.add(INFO, IssueCategory.SPECIAL_CASE, "Enclave country - verify surrounding country borders")
        if code in C.COMPLEX_BORDERS:
            result.add(INFO, IssueCategory.SPECIAL_CASE, "Complex border country - extra validation recommended")
        if code in C.DISPUTED_TERRITORIES:
            result.add(INFO, IssueCategory.SPECIAL_CASE, "Disputed territory - border depiction may vary by source")
        if code in C.TRANSCONTINENTAL:
            result.add(INFO, IssueCategory.SPECIAL_CASE, "Transcontinental country - check continent and antimeridian splits")

    def _check_topology(self, feature: dict, result: GeometryValidationResult) -> None:
        """Self-intersections and similar problems, reported as warnings.

        Skipped when the rings or coordinates are already broken.
        """
        geometry = feature.get("geometry")
        if not _polygonal(geometry):
            return
        if any(
            i.type is ERROR and i.category in (IssueCategory.COORDINATES, IssueCategory.GEOMETRY)
            for i in result.issues
        ):
            return

        try:
            geom = shape(geometry)
        except (GEOSException, ValueError, TypeError) as e:
            result.add(WARNING, IssueCategory.TOPOLOGY, f"Could not build geometry for topology check: {e}")
            return

        if not geom.is_valid:
            result.add(WARNING, IssueCategory.TOPOLOGY, f"Invalid topology: {explain_validity(geom)}")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def generate_statistics(self) -> dict:
        total = len(self._results)
        geometry_types = {t: 0 for t in C.POLYGONAL_TYPES}
        issue_categories: dict[str, int] = {}
        total_vertices = 0
        total_area = 0.0
        total_complexity = 0.0

        for validation in self._results.values():
            metrics = validation.metrics
            total_vertices += metrics.vertex_count
            total_area += metrics.area_km2 or 0.0
            total_complexity += metrics.complexity_ratio or 0.0
            if validation.geometry_type in geometry_types:
                geometry_types[validation.geometry_type] += 1
            for issue in validation.issues:
                issue_categories[issue.category.value] = issue_categories.get(issue.category.value, 0) + 1

        return {
            "total_countries": total,
            "average_vertex_count": round(total_vertices / total) if total else 0,
            "average_area": round(total_area / total) if total else 0,
            "average_complexity": round(total_complexity / total, 2) if total else 0.0,
            "geometry_types": geometry_types,
            "issue_categories": issue_categories,
        }

    def generate_recommendations(self, report: BatchReport) -> list[Recommendation]:
        recommendations: list[Recommendation] = []

        if report.invalid_features > 0:
            recommendations.append(Recommendation(
                priority="HIGH",
                category="DATA_QUALITY",
                message=f"{report.invalid_features} countries have invalid geometry data and need fixing",
            ))

        high_complexity = sum(
            1 for v in self._results.values() if v.metrics.vertex_count > C.HIGH_VERTEX_RECOMMENDATION
        )
        if high_complexity > 0:
            recommendations.append(Recommendation(
                priority="MEDIUM",
                category="PERFORMANCE",
                message=f"{high_complexity} countries have high vertex counts - consider simplification",
            ))

        coordinate_issues = sum(1 for i in report.issues if i.category is IssueCategory.COORDINATES)
        if coordinate_issues > 0:
            recommendations.append(Recommendation(
                priority="HIGH",
                category="COORDINATES",
                message=f"{coordinate_issues} coordinate validation issues found - check data source",
            ))

        return recommendations

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_country_validation(self, country_code: str) -> GeometryValidationResult | None:
        return self._results.get(country_code)

    def get_all_validation_results(self) -> dict[str, GeometryValidationResult]:
        return dict(self._results)


def load_feature_collection(path: str | Path) -> Any:
    """Read a GeoJSON file. Structural problems are left to the validator."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)
