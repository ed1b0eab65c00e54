"""
Request and response models for the Entitlements Service API.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .catalog.models import Plan, StaffPermissionKey, StaffRole, SubjectRole


class SubjectPayload(BaseModel):
    """Acting subject as passed by a caller that already authenticated it."""
    tenant_id: str = Field(..., description="Tenant ID")
    subject_role: SubjectRole = Field(..., description="owner, staff or customer")
    staff_id: Optional[str] = Field(None, description="Staff account ID (staff only)")
    staff_permission_grant: Optional[Dict[StaffPermissionKey, bool]] = Field(
        None, description="Explicit grant; overrides the stored grant for staff_id"
    )


class AccessCheckRequest(SubjectPayload):
    """Request model for a capability check."""
    capability_key: str = Field(..., description="Navigation section, route or action key")


class AccessCheckResponse(BaseModel):
    """Response model for a capability check."""
    capability_key: str
    allowed: bool = Field(..., description="Whether the capability is visible and usable")
    entitled: bool = Field(..., description="Plan and toggle axis")
    permitted: bool = Field(..., description="Staff permission axis")
    reason: Optional[str] = Field(None, description="plan, disabled, permission or role")
    required_plan: Optional[Plan] = Field(None, description="Cheapest plan that would entitle it")


class NavigationRequest(SubjectPayload):
    """Request model for filtering a navigation surface."""
    surface: Literal["sidebar", "mobile"] = Field("sidebar", description="Navigation surface")


class NavSectionResponse(BaseModel):
    key: str
    label: str
    path: str


class NavigationResponse(BaseModel):
    surface: str
    sections: List[NavSectionResponse]


class PlanInfoResponse(BaseModel):
    plan: Plan
    label: str
    monthly_price: Optional[int]
    rank: int


class PlanListResponse(BaseModel):
    version: str
    plans: List[PlanInfoResponse]


class FeatureStateResponse(BaseModel):
    key: str
    label: str
    description: str
    enabled: bool
    locked: bool
    premium: bool
    uses_ai: bool
    entitled: bool
    required_plan: Optional[Plan]


class FeatureGroupResponse(BaseModel):
    key: str
    label: str
    features: List[FeatureStateResponse]


class FeatureSettingsResponse(BaseModel):
    tenant_id: str
    plan: Plan
    groups: List[FeatureGroupResponse]


class ToggleRequest(BaseModel):
    enabled: bool = Field(..., description="Desired state")


class ToggleResponse(BaseModel):
    tenant_id: str
    feature_key: str
    enabled: bool
    updated_at: datetime


class PlanUpdateRequest(BaseModel):
    plan: Plan = Field(..., description="New active plan")


class TenantPlanResponse(BaseModel):
    tenant_id: str
    plan: Plan


class StaffGrantRequest(BaseModel):
    """Provision or replace a staff grant; omitted permissions use the role preset."""
    tenant_id: str = Field(..., description="Tenant the staff account belongs to")
    staff_role: StaffRole = Field(..., description="Staff job role")
    permissions: Optional[Dict[StaffPermissionKey, bool]] = Field(None, description="Explicit permissions")


class StaffGrantResponse(BaseModel):
    staff_id: str
    tenant_id: str
    staff_role: Optional[StaffRole]
    permissions: Dict[str, bool]
    is_active: bool


class StaffActiveRequest(BaseModel):
    """Request model for activating or deactivating a staff account."""
    is_active: bool = Field(..., description="Whether the staff account may act")
