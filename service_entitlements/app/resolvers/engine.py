"""
Wiring of stores and resolvers around one catalog.
"""

from dataclasses import dataclass

from ..catalog.defaults import Catalog
from .access import AccessResolver
from .entitlement import EntitlementResolver
from .guard import RouteGuard
from .settings_view import FeatureSettingsView
from .staff import StaffGrantStore, StaffPermissionResolver
from .tenants import TenantStore
from .toggles import ToggleStore


@dataclass
class AccessEngine:
    """Every component, explicitly constructed from an injected catalog."""
    catalog: Catalog
    toggles: ToggleStore
    tenants: TenantStore
    grants: StaffGrantStore
    entitlements: EntitlementResolver
    staff_permissions: StaffPermissionResolver
    access: AccessResolver
    settings: FeatureSettingsView
    guard: RouteGuard

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "AccessEngine":
        toggles = ToggleStore(catalog.registry)
        tenants = TenantStore()
        grants = StaffGrantStore(catalog.staff_presets)
        entitlements = EntitlementResolver(catalog.plans, toggles)
        staff_permissions = StaffPermissionResolver(catalog.capabilities)
        access = AccessResolver(catalog.capabilities, entitlements, staff_permissions, tenants)

        return cls(
            catalog=catalog,
            toggles=toggles,
            tenants=tenants,
            grants=grants,
            entitlements=entitlements,
            staff_permissions=staff_permissions,
            access=access,
            settings=FeatureSettingsView(catalog.registry, entitlements),
            guard=RouteGuard(access, catalog.plans, grants),
        )
