"""
Per-tenant feature toggle overrides layered over registry defaults.
"""

import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from shared.errors import FeatureLockedError
from shared.logging import get_logger
from ..catalog.models import FeatureDefinition, FeatureToggle
from ..catalog.registry import FeatureRegistry


class TenantToggles:
    """Immutable snapshot of one tenant's stored toggle rows."""

    def __init__(self, tenant_id: str, rows: Mapping[str, bool]):
        self.tenant_id = tenant_id
        self._rows: Mapping[str, bool] = MappingProxyType(dict(rows))

    def stored(self, feature_key: str) -> Optional[bool]:
        """Stored override, or None when the tenant never toggled the feature."""
        return self._rows.get(feature_key)

    def __len__(self) -> int:
        return len(self._rows)


def resolve_enabled(definition: FeatureDefinition, stored: Optional[bool]) -> bool:
    """Two-layer lookup: locked wins, then the stored row, then the default."""
    if definition.locked:
        return True
    if stored is None:
        return definition.default_enabled
    return stored


class ToggleStore:
    """In-memory toggle rows, per tenant then per feature key.

    Rows are loaded from persistence at start-up and written through on
    every change. Readers take a ``snapshot`` so one resolution never
    observes a half-applied set of changes.
    """

    def __init__(self, registry: FeatureRegistry):
        self.registry = registry
        self.logger = get_logger("entitlements.toggles")
        self._rows: Dict[str, Dict[str, FeatureToggle]] = {}
        self._lock = threading.Lock()

    def load(self, rows: Iterable[FeatureToggle]) -> int:
        """Replace the store contents with persisted rows."""
        loaded: Dict[str, Dict[str, FeatureToggle]] = {}
        count = 0
        for row in rows:
            tenant_rows = loaded.setdefault(row.tenant_id, {})
            if row.feature_key not in tenant_rows:
                count += 1
            tenant_rows[row.feature_key] = row
        with self._lock:
            self._rows = loaded
        self.logger.info("Toggle rows loaded", count=count, tenants=len(loaded))
        return count

    def snapshot(self, tenant_id: str) -> TenantToggles:
        with self._lock:
            tenant_rows = self._rows.get(tenant_id, {})
            rows = {feature_key: row.is_enabled for feature_key, row in tenant_rows.items()}
        return TenantToggles(tenant_id, rows)

    def stored_toggle(self, tenant_id: str, feature_key: str) -> Optional[FeatureToggle]:
        with self._lock:
            return self._rows.get(tenant_id, {}).get(feature_key)

    def rows_for(self, tenant_id: str) -> List[FeatureToggle]:
        with self._lock:
            return list(self._rows.get(tenant_id, {}).values())

    def effective_enabled(self, tenant_id: str, feature_key: str,
                          toggles: Optional[TenantToggles] = None) -> bool:
        """Whether the feature is switched on for the tenant.

        Raises ``UnknownFeatureError`` for keys missing from the registry.
        """
        definition = self.registry.get(feature_key)
        if definition.locked:
            return True

        if toggles is not None:
            stored = toggles.stored(feature_key)
        else:
            row = self.stored_toggle(tenant_id, feature_key)
            stored = row.is_enabled if row is not None else None

        return resolve_enabled(definition, stored)

    def prepare(self, tenant_id: str, feature_key: str, enabled: bool) -> FeatureToggle:
        """Validate a change and build the row to upsert, without applying it."""
        definition = self.registry.get(feature_key)
        if definition.locked:
            raise FeatureLockedError(feature_key)

        existing = self.stored_toggle(tenant_id, feature_key)
        if existing is not None and existing.is_enabled == bool(enabled):
            return existing

        return FeatureToggle(
            tenant_id=tenant_id,
            feature_key=feature_key,
            is_enabled=bool(enabled),
            updated_at=datetime.now(timezone.utc),
        )

    def apply(self, row: FeatureToggle) -> FeatureToggle:
        """Upsert a prepared row; last writer wins."""
        with self._lock:
            self._rows.setdefault(row.tenant_id, {})[row.feature_key] = row
        self.logger.info(
            "Feature toggled",
            tenant_id=row.tenant_id,
            feature_key=row.feature_key,
            enabled=row.is_enabled
        )
        return row

    def set_enabled(self, tenant_id: str, feature_key: str, enabled: bool) -> FeatureToggle:
        """Switch a non-locked feature on or off for a tenant.

        Raises ``FeatureLockedError`` for locked features and
        ``UnknownFeatureError`` for unknown keys. Idempotent.
        """
        return self.apply(self.prepare(tenant_id, feature_key, enabled))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(tenant_rows) for tenant_rows in self._rows.values())
