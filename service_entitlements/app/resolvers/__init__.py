"""
Resolvers package.

Answers "is this capability visible and usable right now" from three
independent axes:

- toggles: ToggleStore, per-tenant overrides over registry defaults.
- entitlement: EntitlementResolver, plan x toggle.
- staff: StaffPermissionResolver and the staff grant store.
- access: AccessResolver, the one place the axes are combined.
- guard: RouteGuard, the page/action entry adapter.
- settings_view: grouped read model for the settings editor.
- engine: AccessEngine, wiring of all of the above around a catalog.

All resolvers are synchronous and free of I/O; persisted rows are
loaded into the stores by the service.
"""

from .access import AccessResolver
from .engine import AccessEngine
from .entitlement import EntitlementResolver, FeatureUsability
from .guard import GuardDenied, RouteGuard
from .settings_view import FeatureSettingsView
from .staff import StaffGrantStore, StaffPermissionResolver
from .tenants import TenantStore
from .toggles import TenantToggles, ToggleStore
