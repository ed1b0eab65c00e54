"""
Staff permission axis.
"""

import threading
from dataclasses import replace
from typing import Dict, Iterable, Mapping, Optional

from shared.errors import NotFoundError
from shared.logging import get_logger
from ..catalog.capabilities import CapabilityMap
from ..catalog.models import (
    AccessSubject, StaffPermissionGrant, StaffPermissionKey, StaffRole, SubjectRole,
)


class StaffPermissionResolver:
    """Evaluates a subject's explicit staff permissions for a capability."""

    def __init__(self, capabilities: CapabilityMap):
        self.capabilities = capabilities
        self.logger = get_logger("entitlements.staff")

    def permission_key_for(self, capability_key: str) -> Optional[StaffPermissionKey]:
        return self.capabilities.permission_for(capability_key)

    def is_permitted(self, subject: AccessSubject, capability_key: str) -> bool:
        """Only staff are restricted.

        Inactive accounts are denied everything. Otherwise unmapped
        capabilities pass and missing grants or keys deny.
        """
        if subject.role != SubjectRole.STAFF:
            return True

        if subject.grant is not None and not subject.grant.is_active:
            self.logger.debug(
                "Staff account is inactive",
                staff_id=subject.staff_id,
                capability=capability_key
            )
            return False

        permission_key = self.permission_key_for(capability_key)
        if permission_key is None:
            return True

        if subject.grant is None:
            self.logger.debug(
                "Staff subject has no grant",
                staff_id=subject.staff_id,
                capability=capability_key
            )
            return False

        return subject.grant.is_granted(permission_key)


class StaffGrantStore:
    """Permission grants of provisioned staff accounts, keyed by staff id."""

    def __init__(self, presets: Mapping[StaffRole, Mapping[StaffPermissionKey, bool]]):
        self.presets = presets
        self.logger = get_logger("entitlements.staff_grants")
        self._grants: Dict[str, StaffPermissionGrant] = {}
        self._lock = threading.Lock()

    def load(self, grants: Iterable[StaffPermissionGrant]) -> int:
        loaded = {grant.staff_id: grant for grant in grants}
        with self._lock:
            self._grants = loaded
        self.logger.info("Staff grants loaded", count=len(loaded))
        return len(loaded)

    def get(self, staff_id: str) -> Optional[StaffPermissionGrant]:
        with self._lock:
            return self._grants.get(staff_id)

    def build(self, staff_id: str, tenant_id: str, staff_role: StaffRole,
              permissions: Optional[Mapping[str, bool]] = None,
              is_active: bool = True) -> StaffPermissionGrant:
        """Grant from explicit permissions, or the role preset when none are given."""
        staff_role = StaffRole(staff_role)
        if permissions is None:
            return StaffPermissionGrant(
                staff_id=staff_id,
                tenant_id=tenant_id,
                staff_role=staff_role,
                permissions=dict(self.presets.get(staff_role, {})),
                is_active=bool(is_active),
            )
        return StaffPermissionGrant.from_mapping(staff_id, tenant_id, staff_role, permissions, is_active)

    def prepare_active(self, staff_id: str, is_active: bool) -> StaffPermissionGrant:
        """Copy of the stored grant with its active flag changed, not yet stored."""
        grant = self.get(staff_id)
        if grant is None:
            raise NotFoundError(f"Unknown staff '{staff_id}'", {"staff_id": staff_id})
        return replace(grant, is_active=bool(is_active))

    def put(self, grant: StaffPermissionGrant) -> StaffPermissionGrant:
        with self._lock:
            self._grants[grant.staff_id] = grant
        self.logger.info(
            "Staff grant stored",
            staff_id=grant.staff_id,
            tenant_id=grant.tenant_id,
            staff_role=grant.staff_role.value if grant.staff_role else None,
            is_active=grant.is_active
        )
        return grant

    def remove(self, staff_id: str) -> bool:
        with self._lock:
            removed = self._grants.pop(staff_id, None)
        if removed is not None:
            self.logger.info("Staff grant removed", staff_id=staff_id, tenant_id=removed.tenant_id)
        return removed is not None
