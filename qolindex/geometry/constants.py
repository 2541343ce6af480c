"""Thresholds and known special-case countries for border validation."""
from __future__ import annotations

MIN_AREA_KM2 = 1.0
MAX_AREA_KM2 = 20_000_000.0
MIN_PERIMETER_KM = 10.0
MAX_VERTICES = 50_000
COORDINATE_PRECISION = 6  # decimal places

# Per feature, only the first few out-of-range coordinates are reported
MAX_COORDINATE_ERRORS = 5

# Features above this vertex count trigger a simplification recommendation
HIGH_VERTEX_RECOMMENDATION = 10_000

POLYGONAL_TYPES = ("Polygon", "MultiPolygon")

# ISO 3166-1 alpha-3 codes
ARCHIPELAGOS = frozenset({"IDN", "PHL", "JPN", "GRC", "NOR"})
ENCLAVES = frozenset({"VAT", "SMR", "LSO"})
COMPLEX_BORDERS = frozenset({"IND", "PAK", "BGR", "TUR"})
DISPUTED_TERRITORIES = frozenset({"PSE", "TWN", "XKX"})
TRANSCONTINENTAL = frozenset({"RUS", "TUR", "EGY", "KAZ"})
