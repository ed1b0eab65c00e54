"""
Unit tests for the AccessResolver.
"""

import pytest

from conftest import make_catalog
from shared.errors import NotFoundError, UnknownFeatureError
from service_entitlements.app.catalog.models import (
    AccessSubject, DenialReason, FeatureDefinition, FeatureGroup, FeatureToggle, Plan,
    StaffPermissionGrant, StaffRole,
)
from service_entitlements.app.resolvers.engine import AccessEngine


def staff(tenant_id: str = "tenant-1", **permissions) -> AccessSubject:
    grant = StaffPermissionGrant.from_mapping("staff-1", tenant_id, StaffRole.ASSOCIATE_AGENT, permissions)
    return AccessSubject.staff(tenant_id, grant)


class TestAccessResolver:
    """Test cases for AccessResolver."""

    @pytest.mark.parametrize("f1,f2,expected", [
        (True, True, True),
        (True, False, True),
        (False, True, True),
        (False, False, False),
    ])
    def test_any_of_feature_set(self, combo_engine, f1, f2, expected):
        """Test a capability is entitled when any mapped feature is usable."""
        combo_engine.toggles.set_enabled("tenant-1", "f1", f1)
        combo_engine.toggles.set_enabled("tenant-1", "f2", f2)

        decision = combo_engine.access.decide(AccessSubject.owner("tenant-1"), "combo")

        assert decision.allowed is expected
        assert decision.entitled is expected
        assert decision.permitted is True
        if not expected:
            assert decision.reason == DenialReason.DISABLED

    def test_empty_feature_set_always_entitled(self, combo_engine):
        """Test capabilities mapped to no features."""
        assert combo_engine.access.can_access(AccessSubject.owner("tenant-1"), "home") is True

    def test_unknown_capability_fails_open(self, combo_engine):
        """Test keys absent from the map are allowed for owners and staff."""
        assert combo_engine.access.can_access(AccessSubject.owner("tenant-1"), "brand-new") is True
        assert combo_engine.access.can_access(staff(), "brand-new") is True

    def test_unknown_feature_in_unvalidated_map_fails_loud(self):
        """Test a capability referencing an unregistered feature raises."""
        catalog = make_catalog(
            [FeatureDefinition(key="f1", group=FeatureGroup.MARKETING, label="F1")],
            {"broken": ("f1", "ghost")},
            validate=False,
        )
        engine = AccessEngine.from_catalog(catalog)
        engine.tenants.set_plan("tenant-1", Plan.BASIC)

        with pytest.raises(UnknownFeatureError):
            engine.access.decide(AccessSubject.owner("tenant-1"), "broken")

    def test_plan_denial_reports_required_plan(self, combo_engine):
        """Test plan-level denials name the cheapest unlocking plan."""
        decision = combo_engine.access.decide(AccessSubject.owner("tenant-1"), "pro-section")

        assert decision.allowed is False
        assert decision.entitled is False
        assert decision.reason == DenialReason.PLAN
        assert decision.required_plan == Plan.PRO

    def test_plan_upgrade_grants_access(self, combo_engine):
        """Test changing a tenant's plan changes the decision."""
        owner = AccessSubject.owner("tenant-1")
        assert combo_engine.access.can_access(owner, "pro-section") is False

        combo_engine.tenants.set_plan("tenant-1", Plan.PRO)

        assert combo_engine.access.can_access(owner, "pro-section") is True

    def test_owner_ignores_permissions(self, combo_engine):
        """Test owners are never restricted by staff grants."""
        assert combo_engine.access.can_access(AccessSubject.owner("tenant-1"), "core-section") is True

    def test_staff_missing_permission_fails_closed(self, combo_engine):
        """Test staff grants without the mapped key."""
        decision = combo_engine.access.decide(staff(ai_tools=True), "core-section")

        assert decision.entitled is True
        assert decision.permitted is False
        assert decision.allowed is False
        assert decision.reason == DenialReason.PERMISSION

    def test_staff_with_permission(self, combo_engine):
        """Test explicit grants allow access."""
        assert combo_engine.access.can_access(staff(customer_view=True), "core-section") is True

    def test_entitlement_denial_wins_over_permission(self, combo_engine):
        """Test the entitlement reason is reported when both axes deny."""
        combo_engine.toggles.set_enabled("tenant-1", "f1", False)
        combo_engine.toggles.set_enabled("tenant-1", "f2", False)

        decision = combo_engine.access.decide(staff(ai_tools=False), "combo")

        assert decision.entitled is False
        assert decision.permitted is False
        assert decision.reason == DenialReason.DISABLED

    def test_customer_denied(self, combo_engine):
        """Test customers never reach back-office capabilities."""
        decision = combo_engine.access.decide(AccessSubject.customer("tenant-1"), "home")

        assert decision.allowed is False
        assert decision.reason == DenialReason.ROLE

    def test_unknown_tenant(self, combo_engine):
        """Test unknown tenants are reported, not silently defaulted."""
        with pytest.raises(NotFoundError) as exc_info:
            combo_engine.access.decide(AccessSubject.owner("tenant-404"), "home")

        assert exc_info.value.code == "UNKNOWN_TENANT"

    def test_visible_sections_keeps_order(self, default_engine):
        """Test filtered navigation preserves sidebar order."""
        sidebar = default_engine.catalog.sidebar

        visible = default_engine.access.visible_sections(AccessSubject.owner("tenant-free"), sidebar)

        assert [s.key for s in visible] == ["dashboard", "properties", "inquiries", "customers", "contracts"]

    def test_visible_sections_for_pro_owner(self, default_engine):
        """Test a pro owner sees every sidebar section."""
        sidebar = default_engine.catalog.sidebar

        visible = default_engine.access.visible_sections(AccessSubject.owner("tenant-pro"), sidebar)

        assert visible == list(sidebar)


class TestScenarios:
    """End-to-end decisions against the default catalog."""

    def test_registry_unlocks_on_pro(self, default_engine):
        """Test the legal section on basic, then after an upgrade."""
        default_engine.tenants.set_plan("tenant-a", Plan.BASIC)
        owner = AccessSubject.owner("tenant-a")

        decision = default_engine.access.decide(owner, "legal")
        assert decision.allowed is False
        assert decision.reason == DenialReason.PLAN
        assert decision.required_plan == Plan.PRO

        default_engine.tenants.set_plan("tenant-a", Plan.PRO)
        assert default_engine.access.can_access(owner, "legal") is True

    def test_locked_core_section_survives_stored_off(self, default_engine):
        """Test a stored 'off' row cannot hide a locked section."""
        default_engine.toggles.load([
            FeatureToggle(tenant_id="tenant-free", feature_key="properties", is_enabled=False)
        ])

        assert default_engine.access.can_access(AccessSubject.owner("tenant-free"), "properties") is True

    def test_staff_without_customer_view(self, default_engine):
        """Test a staff member without customer_view or ai_tools."""
        subject = staff("tenant-pro", customer_view=False)

        visible = default_engine.access.visible_sections(subject, default_engine.catalog.sidebar)
        keys = [s.key for s in visible]

        assert "customers" not in keys
        assert "properties" in keys
        assert "ai-tools" not in keys

    def test_analytics_disabled_entirely(self, default_engine):
        """Test turning off every analytics feature hides the section."""
        for key in ("avm", "roi_calculator", "location_report", "buy_sell_signal"):
            default_engine.toggles.set_enabled("tenant-basic", key, False)

        decision = default_engine.access.decide(AccessSubject.owner("tenant-basic"), "analytics")

        assert decision.allowed is False
        assert decision.reason == DenialReason.DISABLED
        assert decision.required_plan is None
