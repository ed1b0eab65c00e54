"""
Unit tests for the ToggleStore.
"""

import time

import pytest

from shared.errors import FeatureLockedError, UnknownFeatureError
from service_entitlements.app.catalog.models import FeatureToggle
from service_entitlements.app.resolvers.toggles import ToggleStore, resolve_enabled


class TestToggleStore:
    """Test cases for ToggleStore."""

    @pytest.fixture
    def store(self, default_catalog):
        """Create ToggleStore instance."""
        return ToggleStore(default_catalog.registry)

    def test_default_used_when_no_row(self, store):
        """Test registry defaults apply without a stored row."""
        assert store.effective_enabled("tenant-1", "ai_description") is True
        assert store.effective_enabled("tenant-1", "ai_staging") is False
        assert store.stored_toggle("tenant-1", "ai_staging") is None

    def test_locked_feature_ignores_stored_row(self, store):
        """Test a stored 'off' row never disables a locked feature."""
        store.load([FeatureToggle(tenant_id="tenant-1", feature_key="properties", is_enabled=False)])

        assert store.effective_enabled("tenant-1", "properties") is True
        assert store.effective_enabled("tenant-1", "properties", store.snapshot("tenant-1")) is True

    @pytest.mark.parametrize("enabled", [False, True])
    def test_set_enabled_on_locked_feature_fails(self, store, enabled):
        """Test locked features reject toggles."""
        with pytest.raises(FeatureLockedError) as exc_info:
            store.set_enabled("tenant-1", "properties", enabled)

        assert exc_info.value.code == "FEATURE_LOCKED"
        assert len(store) == 0

    def test_unknown_feature_fails(self, store):
        """Test unknown feature keys raise on read and write."""
        with pytest.raises(UnknownFeatureError):
            store.effective_enabled("tenant-1", "nope")
        with pytest.raises(UnknownFeatureError):
            store.set_enabled("tenant-1", "nope", True)

    @pytest.mark.parametrize("enabled", [False, True])
    def test_write_then_read(self, store, enabled):
        """Test write-then-read consistency."""
        store.set_enabled("tenant-1", "avm", enabled)

        assert store.effective_enabled("tenant-1", "avm") is enabled

    def test_set_enabled_is_idempotent(self, store):
        """Test repeated writes keep a single row and the same state."""
        first = store.set_enabled("tenant-1", "avm", False)
        second = store.set_enabled("tenant-1", "avm", False)

        assert first == second
        assert len(store) == 1
        assert store.rows_for("tenant-1") == [first]
        assert store.effective_enabled("tenant-1", "avm") is False

    def test_stored_false_differs_from_absent(self, store):
        """Test an explicit 'off' row beats a default of 'on'."""
        store.set_enabled("tenant-1", "roi_calculator", False)

        assert store.effective_enabled("tenant-1", "roi_calculator") is False
        assert store.effective_enabled("tenant-2", "roi_calculator") is True

    def test_turning_back_on_keeps_row(self, store):
        """Test rows are updated, never deleted."""
        store.set_enabled("tenant-1", "avm", False)
        store.set_enabled("tenant-1", "avm", True)

        assert len(store) == 1
        assert store.stored_toggle("tenant-1", "avm").is_enabled is True

    def test_snapshot_is_isolated_from_later_writes(self, store):
        """Test a snapshot keeps seeing the rows it was taken from."""
        store.set_enabled("tenant-1", "avm", True)
        snapshot = store.snapshot("tenant-1")

        store.set_enabled("tenant-1", "avm", False)

        assert store.effective_enabled("tenant-1", "avm", snapshot) is True
        assert store.effective_enabled("tenant-1", "avm") is False

    def test_snapshot_only_contains_tenant_rows(self, store):
        """Test snapshots are tenant-scoped."""
        store.set_enabled("tenant-1", "avm", False)
        store.set_enabled("tenant-2", "scoring", False)

        snapshot = store.snapshot("tenant-1")

        assert len(snapshot) == 1
        assert snapshot.stored("avm") is False
        assert snapshot.stored("scoring") is None

    def test_snapshot_cost_independent_of_other_tenants(self, store):
        """Test snapshots only touch the requested tenant's rows."""
        store.load(
            FeatureToggle(tenant_id=f"tenant-{n}", feature_key=key, is_enabled=False)
            for n in range(20000)
            for key in ("avm", "scoring", "roi_calculator")
        )
        store.set_enabled("tenant-x", "avm", True)

        start = time.perf_counter()
        for _ in range(1000):
            snapshot = store.snapshot("tenant-x")
        elapsed = time.perf_counter() - start

        assert len(store) == 60001
        assert len(snapshot) == 1
        assert snapshot.stored("avm") is True
        assert store.rows_for("tenant-x") == [store.stored_toggle("tenant-x", "avm")]
        assert elapsed < 0.5

    def test_prepare_does_not_apply(self, store):
        """Test prepare validates without mutating."""
        row = store.prepare("tenant-1", "avm", False)

        assert row.is_enabled is False
        assert len(store) == 0

        store.apply(row)
        assert store.effective_enabled("tenant-1", "avm") is False

    def test_load_replaces_rows(self, store):
        """Test loading persisted rows."""
        store.set_enabled("tenant-1", "avm", False)

        count = store.load([
            FeatureToggle(tenant_id="tenant-9", feature_key="scoring", is_enabled=False)
        ])

        assert count == 1
        assert store.stored_toggle("tenant-1", "avm") is None
        assert store.effective_enabled("tenant-9", "scoring") is False


def test_resolve_enabled_layers(default_catalog):
    """Test the two-layer lookup directly."""
    registry = default_catalog.registry

    assert resolve_enabled(registry.get("properties"), False) is True
    assert resolve_enabled(registry.get("ai_staging"), None) is False
    assert resolve_enabled(registry.get("ai_staging"), True) is True
    assert resolve_enabled(registry.get("avm"), False) is False
