"""Tests for weighting schemes and the freshness cache."""
from __future__ import annotations

import logging

import pytest

from qolindex.score.cache import FreshnessCache
from qolindex.score.criteria import CRITERIA, CriterionId, UnknownCriterionError
from qolindex.score.weighting import WeightingRegistry, scheme_id_for


# ---------------------------------------------------------------------------
# WeightingRegistry
# ---------------------------------------------------------------------------

class TestWeightingRegistry:
    def test_builtin_schemes(self):
        schemes = WeightingRegistry().snapshot()
        assert set(schemes) == {"equal", "environmentFocused", "economicFocused"}
        assert all(w == 1.0 for w in schemes["equal"].weights.values())
        assert schemes["environmentFocused"].weight_for(CriterionId.FLOODS) == 1.5
        assert schemes["environmentFocused"].weight_for(CriterionId.GDP_PER_CAPITA) == 0.8
        assert schemes["economicFocused"].weight_for(CriterionId.GDP_PER_CAPITA) == 2.0
        assert schemes["economicFocused"].weight_for(CriterionId.FOOD_SECURITY) == 1.5

    def test_unknown_scheme_falls_back_with_warning(self, caplog):
        registry = WeightingRegistry()
        with caplog.at_level(logging.WARNING, logger="qolindex.score.weighting"):
            scheme = registry.resolve("typoFocused")
        assert scheme.id == "equal"
        assert any("typoFocused" in r.getMessage() for r in caplog.records)

    def test_none_resolves_to_equal(self):
        assert WeightingRegistry().resolve(None).id == "equal"

    def test_register_merges_over_equal(self):
        registry = WeightingRegistry()
        scheme_id = registry.register("Heat  Averse", "Avoid heat", {"extremeHeat": 3.0})
        assert scheme_id == "heat_averse"
        scheme = registry.resolve("heat_averse")
        assert scheme.weight_for(CriterionId.EXTREME_HEAT) == 3.0
        assert scheme.weight_for(CriterionId.FLOODS) == 1.0
        assert len(scheme.weights) == len(CRITERIA)
        assert "heat_averse" in registry

    @pytest.mark.parametrize("weight", [0, -1.5])
    def test_register_rejects_non_positive(self, weight):
        with pytest.raises(ValueError):
            WeightingRegistry().register("bad", "", {"floods": weight})

    def test_register_rejects_unknown_criterion(self):
        with pytest.raises(UnknownCriterionError):
            WeightingRegistry().register("bad", "", {"earthquakes": 1.0})

    def test_cannot_replace_equal(self):
        with pytest.raises(ValueError):
            WeightingRegistry().register("Equal", "", {"floods": 2.0})

    def test_snapshot_is_a_copy(self):
        registry = WeightingRegistry()
        snapshot = registry.snapshot()
        snapshot["equal"].weights[CriterionId.FLOODS] = 99.0
        del snapshot["economicFocused"]
        assert registry.resolve("equal").weight_for(CriterionId.FLOODS) == 1.0
        assert "economicFocused" in registry

    def test_scheme_id_for(self):
        assert scheme_id_for("  My Custom\tScheme ") == "my_custom_scheme"


# ---------------------------------------------------------------------------
# FreshnessCache
# ---------------------------------------------------------------------------

class TestFreshnessCache:
    def test_expires_after_ttl(self, fake_clock):
        clock = fake_clock
        cache: FreshnessCache[int] = FreshnessCache(300, clock=clock)
        cache.set("k", 1)

        clock.now = 299.9
        assert cache.get("k") == 1
        clock.now = 300.0
        assert cache.get("k") is None

    def test_missing_key(self):
        assert FreshnessCache(10).get("nope") is None

    def test_invalidate(self, fake_clock):
        cache: FreshnessCache[int] = FreshnessCache(10, clock=fake_clock)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.invalidate("a") == 1
        assert cache.invalidate("a") == 0
        assert cache.get("b") == 2
        assert cache.invalidate() == 1
        assert len(cache) == 0

    def test_stats(self, fake_clock):
        clock = fake_clock
        cache: FreshnessCache[int] = FreshnessCache(10, clock=clock)
        cache.set("old", 1)
        clock.now = 8
        cache.set("new", 2)
        clock.now = 12
        assert cache.stats == {"entries": 2, "fresh": 1, "ttl_seconds": 10}

    def test_expired_entry_is_dropped_on_read(self, fake_clock):
        cache: FreshnessCache[int] = FreshnessCache(10, clock=fake_clock)
        cache.set("k", 1)
        fake_clock.now = 10
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_drops_expired_entries(self, fake_clock):
        cache: FreshnessCache[int] = FreshnessCache(10, clock=fake_clock)
        for year in range(1000):
            fake_clock.now += 11
            cache.set(year, year)
            assert len(cache) == 1
        assert cache.stats == {"entries": 1, "fresh": 1, "ttl_seconds": 10}
