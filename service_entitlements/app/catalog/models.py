"""
Catalog data models for the Entitlements Service.

Everything in this module is an immutable value type: plans, feature
definitions, staff permission keys and the acting subject. Mutable state
(toggle rows, grants, tenant plans) lives in the stores under
``app.resolvers``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Mapping, Optional

from shared.errors import ValidationError


class Plan(str, Enum):
    """Subscription tiers, totally ordered by ``PLAN_RANK``."""
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def rank(self) -> int:
        return PLAN_RANK[self]


PLAN_RANK: Dict[Plan, int] = {
    Plan.FREE: 0,
    Plan.BASIC: 1,
    Plan.PRO: 2,
    Plan.ENTERPRISE: 3,
}


class FeatureGroup(str, Enum):
    """Feature categories shown in the settings editor."""
    CORE = "core"
    AI = "ai"
    MARKETING = "marketing"
    CUSTOMER_SERVICE = "customer_service"
    FIELD = "field"
    LEGAL = "legal"
    COLLABORATION = "collaboration"
    FLOATING = "floating"


class StaffPermissionKey(str, Enum):
    """Coarse capability buckets a staff member can be granted."""
    PROPERTY_CREATE = "property_create"
    PROPERTY_DELETE = "property_delete"
    CONTRACT_CREATE = "contract_create"
    CONTRACT_APPROVE = "contract_approve"
    E_SIGNATURE = "e_signature"
    CUSTOMER_VIEW = "customer_view"
    AI_TOOLS = "ai_tools"
    CO_BROKERAGE = "co_brokerage"
    SETTINGS = "settings"


class SubjectRole(str, Enum):
    """Role of the acting principal."""
    OWNER = "owner"
    STAFF = "staff"
    CUSTOMER = "customer"


class StaffRole(str, Enum):
    """Job role of a staff account; selects the default permission preset."""
    LEAD_AGENT = "lead_agent"
    ASSOCIATE_AGENT = "associate_agent"
    ASSISTANT = "assistant"


class DenialReason(str, Enum):
    """Why a capability was denied."""
    PLAN = "plan"
    DISABLED = "disabled"
    PERMISSION = "permission"
    ROLE = "role"


@dataclass(frozen=True)
class PlanInfo:
    """Display metadata for a plan."""
    plan: Plan
    label: str
    monthly_price: Optional[int]  # None: negotiated


@dataclass(frozen=True)
class FeatureDefinition:
    """Code-defined feature metadata."""
    key: str
    group: FeatureGroup
    label: str
    description: str = ""
    default_enabled: bool = True
    locked: bool = False
    requires_plan: Optional[Plan] = None
    premium: bool = False
    uses_ai: bool = False


@dataclass(frozen=True)
class FeatureToggle:
    """Per-tenant override of a feature's enabled state."""
    tenant_id: str
    feature_key: str
    is_enabled: bool
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class NavSection:
    """A navigation entry backed by a capability key."""
    key: str
    label: str
    path: str


def parse_permissions(permissions: Optional[Mapping[str, bool]]) -> Dict[StaffPermissionKey, bool]:
    """Normalize a raw permission mapping into enum keys."""
    parsed: Dict[StaffPermissionKey, bool] = {}
    for raw_key, value in (permissions or {}).items():
        try:
            key = StaffPermissionKey(raw_key)
        except ValueError:
            raise ValidationError(
                f"Unknown staff permission '{raw_key}'",
                {"permission": str(raw_key)}
            )
        parsed[key] = bool(value)
    return parsed


@dataclass(frozen=True)
class StaffPermissionGrant:
    """Explicit permission set of one staff account."""
    staff_id: str
    tenant_id: str
    staff_role: Optional[StaffRole] = None
    permissions: Mapping[StaffPermissionKey, bool] = field(default_factory=dict)
    is_active: bool = True

    def is_granted(self, key: StaffPermissionKey) -> bool:
        """Missing keys are denied; an inactive account is denied everything."""
        return self.is_active and self.permissions.get(key) is True

    @classmethod
    def from_mapping(cls, staff_id: str, tenant_id: str, staff_role: Optional[StaffRole],
                     permissions: Optional[Mapping[str, bool]],
                     is_active: bool = True) -> "StaffPermissionGrant":
        return cls(
            staff_id=staff_id,
            tenant_id=tenant_id,
            staff_role=StaffRole(staff_role) if staff_role is not None else None,
            permissions=parse_permissions(permissions),
            is_active=bool(is_active),
        )

    def as_dict(self) -> Dict[str, bool]:
        return {key.value: value for key, value in self.permissions.items()}


@dataclass(frozen=True)
class AccessSubject:
    """The acting principal as established by the authentication layer."""
    role: SubjectRole
    tenant_id: str
    staff_id: Optional[str] = None
    grant: Optional[StaffPermissionGrant] = None

    @classmethod
    def owner(cls, tenant_id: str) -> "AccessSubject":
        return cls(role=SubjectRole.OWNER, tenant_id=tenant_id)

    @classmethod
    def staff(cls, tenant_id: str, grant: Optional[StaffPermissionGrant],
              staff_id: Optional[str] = None) -> "AccessSubject":
        if staff_id is None and grant is not None:
            staff_id = grant.staff_id
        return cls(role=SubjectRole.STAFF, tenant_id=tenant_id, staff_id=staff_id, grant=grant)

    @classmethod
    def customer(cls, tenant_id: str) -> "AccessSubject":
        return cls(role=SubjectRole.CUSTOMER, tenant_id=tenant_id)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of one capability resolution.

    ``entitled`` (plan and toggle axis) and ``permitted`` (staff axis) are
    kept apart so an upgrade prompt can tell the two denials apart.
    """
    capability_key: str
    allowed: bool
    entitled: bool
    permitted: bool
    reason: Optional[DenialReason] = None
    required_plan: Optional[Plan] = None
