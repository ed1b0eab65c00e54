"""
Shared fixtures for Entitlements Service tests.
"""

from typing import Dict, Iterable, Optional

import pytest

from service_entitlements.app.catalog.capabilities import CapabilityMap
from service_entitlements.app.catalog.defaults import (
    Catalog, PLAN_INFO, STAFF_ROLE_PRESETS, build_default_catalog,
)
from service_entitlements.app.catalog.models import (
    FeatureDefinition, FeatureGroup, Plan, StaffPermissionKey,
)
from service_entitlements.app.catalog.plans import PlanCatalog
from service_entitlements.app.catalog.registry import FeatureRegistry
from service_entitlements.app.resolvers.engine import AccessEngine


def make_catalog(definitions: Iterable[FeatureDefinition],
                 capability_features: Dict[str, Iterable[str]],
                 capability_permissions: Optional[Dict[str, StaffPermissionKey]] = None,
                 validate: bool = True) -> Catalog:
    """Build a catalog from fabricated definitions, grouped in first-seen order."""
    grouped: Dict[FeatureGroup, list] = {}
    for definition in definitions:
        grouped.setdefault(definition.group, []).append(definition)

    registry = FeatureRegistry([(group, group.value.title(), defs) for group, defs in grouped.items()])
    capabilities = CapabilityMap(capability_features, capability_permissions or {})
    if validate:
        capabilities.validate(registry)

    return Catalog(
        registry=registry,
        plans=PlanCatalog.from_registry(registry, "test", PLAN_INFO),
        capabilities=capabilities,
        staff_presets=STAFF_ROLE_PRESETS,
    )


@pytest.fixture
def default_catalog():
    """The product's default catalog."""
    return build_default_catalog()


@pytest.fixture
def default_engine(default_catalog):
    """Engine over the default catalog with one tenant per plan."""
    engine = AccessEngine.from_catalog(default_catalog)
    for plan in Plan:
        engine.tenants.set_plan(f"tenant-{plan.value}", plan)
    return engine


@pytest.fixture
def combo_catalog():
    """Two independently toggleable features behind one capability."""
    definitions = [
        FeatureDefinition(key="f1", group=FeatureGroup.MARKETING, label="F1"),
        FeatureDefinition(key="f2", group=FeatureGroup.MARKETING, label="F2"),
        FeatureDefinition(key="pro_only", group=FeatureGroup.LEGAL, label="Pro only",
                          requires_plan=Plan.PRO),
        FeatureDefinition(key="core", group=FeatureGroup.CORE, label="Core", locked=True),
    ]
    return make_catalog(
        definitions,
        {
            "combo": ("f1", "f2"),
            "pro-section": ("pro_only",),
            "home": (),
            "core-section": ("core",),
        },
        {
            "combo": StaffPermissionKey.AI_TOOLS,
            "core-section": StaffPermissionKey.CUSTOMER_VIEW,
        },
    )


@pytest.fixture
def combo_engine(combo_catalog):
    """Engine over ``combo_catalog`` with tenant-1 on the basic plan."""
    engine = AccessEngine.from_catalog(combo_catalog)
    engine.tenants.set_plan("tenant-1", Plan.BASIC)
    return engine
