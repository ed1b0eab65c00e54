"""
Unit tests for staff permissions and grant storage.
"""

import pytest

from shared.errors import NotFoundError, ValidationError
from service_entitlements.app.catalog.models import (
    AccessSubject, DenialReason, StaffPermissionGrant, StaffPermissionKey, StaffRole,
)


def grant_with(**permissions) -> StaffPermissionGrant:
    return StaffPermissionGrant.from_mapping("staff-1", "tenant-1", StaffRole.ASSOCIATE_AGENT, permissions)


class TestStaffPermissionResolver:
    """Test cases for StaffPermissionResolver."""

    def test_owner_always_permitted(self, default_engine):
        """Test owners bypass the staff axis."""
        resolver = default_engine.staff_permissions
        subject = AccessSubject.owner("tenant-1")

        assert resolver.is_permitted(subject, "customers") is True
        assert resolver.is_permitted(subject, "settings") is True

    def test_explicit_true_permits(self, default_engine):
        """Test a granted key."""
        subject = AccessSubject.staff("tenant-1", grant_with(customer_view=True))

        assert default_engine.staff_permissions.is_permitted(subject, "customers") is True

    def test_explicit_false_denies(self, default_engine):
        """Test a revoked key."""
        subject = AccessSubject.staff("tenant-1", grant_with(customer_view=False))

        assert default_engine.staff_permissions.is_permitted(subject, "customers") is False

    def test_missing_key_fails_closed(self, default_engine):
        """Test keys absent from a grant are treated as not granted."""
        subject = AccessSubject.staff("tenant-1", grant_with(ai_tools=True))

        assert default_engine.staff_permissions.is_permitted(subject, "customers") is False

    def test_missing_grant_fails_closed(self, default_engine):
        """Test staff without any grant."""
        subject = AccessSubject.staff("tenant-1", None, staff_id="staff-9")

        assert default_engine.staff_permissions.is_permitted(subject, "customers") is False

    def test_unmapped_capability_passes(self, default_engine):
        """Test capabilities without a permission key never restrict staff."""
        subject = AccessSubject.staff("tenant-1", None, staff_id="staff-9")

        assert default_engine.staff_permissions.is_permitted(subject, "properties") is True
        assert default_engine.staff_permissions.is_permitted(subject, "nonexistent") is True

    def test_permission_key_for(self, default_engine):
        """Test capability to permission lookup."""
        resolver = default_engine.staff_permissions

        assert resolver.permission_key_for("contract.approve") == StaffPermissionKey.CONTRACT_APPROVE
        assert resolver.permission_key_for("dashboard") is None


class TestStaffPermissionGrant:
    """Test cases for grant parsing."""

    def test_unknown_permission_key_rejected(self):
        """Test grants only accept known keys."""
        with pytest.raises(ValidationError):
            grant_with(launch_rockets=True)

    def test_as_dict(self):
        """Test serialisation uses plain keys."""
        grant = grant_with(customer_view=True, settings=False)

        assert grant.as_dict() == {"customer_view": True, "settings": False}


class TestStaffGrantStore:
    """Test cases for StaffGrantStore."""

    def test_build_from_preset(self, default_engine):
        """Test role presets fill in a grant without explicit permissions."""
        grant = default_engine.grants.build("staff-1", "tenant-1", StaffRole.ASSISTANT)

        assert grant.staff_role == StaffRole.ASSISTANT
        assert grant.is_granted(StaffPermissionKey.CUSTOMER_VIEW) is True
        assert grant.is_granted(StaffPermissionKey.AI_TOOLS) is False

    def test_lead_agent_preset_grants_everything(self, default_engine):
        """Test the lead agent preset."""
        grant = default_engine.grants.build("staff-1", "tenant-1", StaffRole.LEAD_AGENT)

        assert all(grant.is_granted(key) for key in StaffPermissionKey)

    def test_build_with_explicit_permissions(self, default_engine):
        """Test explicit permissions override the preset entirely."""
        grant = default_engine.grants.build(
            "staff-1", "tenant-1", StaffRole.LEAD_AGENT, {"customer_view": False}
        )

        assert grant.is_granted(StaffPermissionKey.CUSTOMER_VIEW) is False
        assert grant.is_granted(StaffPermissionKey.SETTINGS) is False

    def test_put_get_remove(self, default_engine):
        """Test grant lifecycle."""
        store = default_engine.grants
        grant = store.put(store.build("staff-1", "tenant-1", StaffRole.ASSISTANT))

        assert store.get("staff-1") == grant
        assert store.remove("staff-1") is True
        assert store.get("staff-1") is None
        assert store.remove("staff-1") is False

    def test_load_replaces_grants(self, default_engine):
        """Test loading persisted grants."""
        store = default_engine.grants
        store.put(store.build("staff-old", "tenant-1", StaffRole.ASSISTANT))

        count = store.load([grant_with(customer_view=True)])

        assert count == 1
        assert store.get("staff-old") is None
        assert store.get("staff-1") is not None


class TestInactiveStaff:
    """Test cases for suspended staff accounts."""

    def test_inactive_grant_denies_mapped_capability(self, default_engine):
        """Test permissions of a suspended account no longer apply."""
        grant = StaffPermissionGrant.from_mapping(
            "staff-1", "tenant-1", StaffRole.LEAD_AGENT, {"customer_view": True}, is_active=False
        )
        subject = AccessSubject.staff("tenant-1", grant)

        assert grant.is_granted(StaffPermissionKey.CUSTOMER_VIEW) is False
        assert default_engine.staff_permissions.is_permitted(subject, "customers") is False

    def test_inactive_grant_denies_unmapped_capability(self, default_engine):
        """Test a suspended account is denied even where staff are not restricted."""
        default_engine.grants.put(grant_with(customer_view=True))
        subject = AccessSubject.staff("tenant-1", default_engine.grants.prepare_active("staff-1", False))

        assert default_engine.staff_permissions.is_permitted(subject, "properties") is False
        assert default_engine.staff_permissions.is_permitted(subject, "dashboard") is False

    def test_prepare_active_does_not_store(self, default_engine):
        """Test the active flag change is applied only by put."""
        store = default_engine.grants
        store.put(grant_with(customer_view=True))

        updated = store.prepare_active("staff-1", False)

        assert updated.is_active is False
        assert updated.as_dict() == {"customer_view": True}
        assert store.get("staff-1").is_active is True

        store.put(updated)
        assert store.get("staff-1").is_active is False

    def test_prepare_active_unknown_staff(self, default_engine):
        """Test unknown staff ids."""
        with pytest.raises(NotFoundError):
            default_engine.grants.prepare_active("nobody", True)

    def test_inactive_staff_sees_no_sections(self, default_engine):
        """Test a suspended account loses the whole sidebar."""
        grant = default_engine.grants.build("staff-1", "tenant-pro", StaffRole.LEAD_AGENT, is_active=False)
        subject = AccessSubject.staff("tenant-pro", grant)

        assert default_engine.access.visible_sections(subject, default_engine.catalog.sidebar) == []
        decision = default_engine.access.decide(subject, "dashboard")
        assert decision.entitled is True
        assert decision.reason == DenialReason.PERMISSION
