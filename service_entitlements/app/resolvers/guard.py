"""
Route guard adapter for page and action entry points.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from fastapi import Header

from shared.errors import AuthorizationError, CapabilityDeniedError, ValidationError
from shared.logging import get_logger, set_subject_context
from ..catalog.models import (
    AccessDecision, AccessSubject, DenialReason, PlanInfo, SubjectRole,
)
from ..catalog.plans import PlanCatalog
from .access import AccessResolver
from .staff import StaffGrantStore


@dataclass(frozen=True)
class GuardDenied:
    """What a guarded region renders instead of its content."""
    decision: AccessDecision
    message: str
    upgrade_plan: Optional[PlanInfo] = None

    @property
    def capability_key(self) -> str:
        return self.decision.capability_key

    @property
    def reason(self) -> Optional[DenialReason]:
        return self.decision.reason


class RouteGuard:
    """Wraps ``AccessResolver.decide`` so a denied region never executes."""

    def __init__(self, access: AccessResolver, plans: PlanCatalog, grants: StaffGrantStore):
        self.access = access
        self.plans = plans
        self.grants = grants
        self.logger = get_logger("entitlements.guard")

    def subject_for(self, tenant_id: str, role: SubjectRole, staff_id: Optional[str] = None) -> AccessSubject:
        """Build the acting subject from identity established upstream."""
        role = SubjectRole(role)
        if role != SubjectRole.STAFF:
            return AccessSubject(role=role, tenant_id=tenant_id)

        grant = self.grants.get(staff_id) if staff_id else None
        if grant is not None and grant.tenant_id != tenant_id:
            # Grant of another office never applies
            self.logger.warning(
                "Staff grant tenant mismatch",
                staff_id=staff_id,
                tenant_id=tenant_id,
                grant_tenant_id=grant.tenant_id
            )
            grant = None
        return AccessSubject.staff(tenant_id, grant, staff_id=staff_id)

    def denial(self, decision: AccessDecision) -> GuardDenied:
        """Upgrade or permission prompt for a denied decision."""
        if decision.reason == DenialReason.PLAN and decision.required_plan is not None:
            info = self.plans.info(decision.required_plan)
            return GuardDenied(
                decision=decision,
                message=f"'{decision.capability_key}' is available from the {info.label} plan",
                upgrade_plan=info,
            )
        if decision.reason == DenialReason.DISABLED:
            message = f"'{decision.capability_key}' is turned off in the office feature settings"
        elif decision.reason == DenialReason.PERMISSION:
            message = f"Ask the office owner for access to '{decision.capability_key}'"
        else:
            message = f"'{decision.capability_key}' is not available"
        return GuardDenied(decision=decision, message=message)

    def run(self, subject: AccessSubject, capability_key: str,
            handler: Callable[..., Any], *args, **kwargs) -> Union[Any, GuardDenied]:
        """Call ``handler`` only when access is allowed; otherwise return the denial."""
        decision = self.access.decide(subject, capability_key)
        if not decision.allowed:
            return self.denial(decision)
        return handler(*args, **kwargs)

    def enforce(self, subject: AccessSubject, capability_key: str) -> AccessDecision:
        """Raise ``CapabilityDeniedError`` unless access is allowed."""
        decision = self.access.decide(subject, capability_key)
        if decision.allowed:
            return decision

        denied = self.denial(decision)
        details = {"message": denied.message}
        if decision.required_plan is not None:
            details["required_plan"] = decision.required_plan.value
        self.logger.info(
            "Guarded capability denied",
            tenant_id=subject.tenant_id,
            role=subject.role.value,
            capability=capability_key,
            reason=decision.reason.value if decision.reason else None
        )
        raise CapabilityDeniedError(
            capability_key,
            decision.reason.value if decision.reason else "denied",
            details
        )

    def current_subject(self):
        """FastAPI dependency resolving the acting subject from identity headers."""

        async def dependency(
            x_tenant_id: str = Header(..., description="Tenant of the acting user"),
            x_user_role: str = Header(..., description="owner, staff or customer"),
            x_staff_id: Optional[str] = Header(None, description="Staff account id"),
        ) -> AccessSubject:
            try:
                role = SubjectRole(x_user_role)
            except ValueError:
                raise ValidationError("Unknown subject role", {"role": x_user_role})
            set_subject_context(tenant_id=x_tenant_id, role=role.value, staff_id=x_staff_id)
            return self.subject_for(x_tenant_id, role, x_staff_id)

        return dependency

    def require(self, capability_key: str):
        """FastAPI dependency guarding a route with ``capability_key``."""
        resolve_subject = self.current_subject()

        async def dependency(
            x_tenant_id: str = Header(...),
            x_user_role: str = Header(...),
            x_staff_id: Optional[str] = Header(None),
        ) -> AccessSubject:
            subject = await resolve_subject(x_tenant_id, x_user_role, x_staff_id)
            self.enforce(subject, capability_key)
            return subject

        return dependency


def ensure_same_tenant(subject: AccessSubject, tenant_id: str) -> None:
    """Reject actions on another tenant's records."""
    if subject.tenant_id != tenant_id:
        raise AuthorizationError(
            "Subject does not belong to this tenant",
            {"tenant_id": tenant_id}
        )


def ensure_owner(subject: AccessSubject, tenant_id: str, action: str) -> None:
    """Reject owner-only actions by staff, or by owners of another tenant."""
    ensure_same_tenant(subject, tenant_id)
    if subject.role != SubjectRole.OWNER:
        raise AuthorizationError(
            f"Only the office owner can {action}",
            {"tenant_id": tenant_id, "role": subject.role.value}
        )
