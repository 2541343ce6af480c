"""Process-wide engine and validator used by the routes.

Tests replace these through ``app.dependency_overrides``.
"""
from __future__ import annotations

from qolindex.geometry.validator import GeometryValidator
from qolindex.ingest.upstream import UpstreamDataSource
from qolindex.score.engine import IndexEngine

_engine: IndexEngine | None = None
_validator: GeometryValidator | None = None


def get_engine() -> IndexEngine:
    global _engine
    if _engine is None:
        _engine = IndexEngine(UpstreamDataSource())
    return _engine


def get_validator() -> GeometryValidator:
    global _validator
    if _validator is None:
        _validator = GeometryValidator()
    return _validator


def reset_globals() -> None:
    global _engine, _validator
    _engine = None
    _validator = None
