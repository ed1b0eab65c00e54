"""
Entitlements service for the Realty Access Layer.
"""

from typing import Optional

from fastapi import Depends

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import NotFoundError, ServiceError

from .catalog.defaults import Catalog, build_default_catalog
from .catalog.models import AccessSubject, StaffPermissionGrant, SubjectRole
from .persistence.postgres import PostgreSQLPersistence
from .resolvers.engine import AccessEngine
from .resolvers.guard import ensure_owner, ensure_same_tenant
from .schemas import (
    AccessCheckRequest, AccessCheckResponse, FeatureGroupResponse,
    FeatureSettingsResponse, FeatureStateResponse, NavigationRequest,
    NavigationResponse, NavSectionResponse, PlanInfoResponse, PlanListResponse,
    PlanUpdateRequest, StaffActiveRequest, StaffGrantRequest, StaffGrantResponse, SubjectPayload,
    TenantPlanResponse, ToggleRequest, ToggleResponse,
)


def grant_response(grant: StaffPermissionGrant) -> StaffGrantResponse:
    return StaffGrantResponse(
        staff_id=grant.staff_id,
        tenant_id=grant.tenant_id,
        staff_role=grant.staff_role,
        permissions=grant.as_dict(),
        is_active=grant.is_active
    )


class EntitlementsService(BaseService):
    """Entitlements service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, catalog: Optional[Catalog] = None):
        super().__init__("entitlements", 8011, config=config)

        self.catalog = catalog or build_default_catalog(self.config.catalog_version)
        self.engine = AccessEngine.from_catalog(self.catalog)
        self.persistence: Optional[PostgreSQLPersistence] = None
        if self.config.persistence_enabled:
            self.persistence = PostgreSQLPersistence(self.config.postgres_dsn)

        self._setup_entitlements_routes()

    def subject_from_payload(self, payload: SubjectPayload) -> AccessSubject:
        """Subject for API callers that pass identity in the request body."""
        if payload.subject_role == SubjectRole.STAFF and payload.staff_permission_grant is not None:
            stored = self.engine.grants.get(payload.staff_id) if payload.staff_id else None
            grant = StaffPermissionGrant.from_mapping(
                staff_id=payload.staff_id or "",
                tenant_id=payload.tenant_id,
                staff_role=stored.staff_role if stored else None,
                permissions=payload.staff_permission_grant,
                is_active=stored.is_active if stored else True,
            )
            return AccessSubject.staff(payload.tenant_id, grant, staff_id=payload.staff_id)
        return self.engine.guard.subject_for(payload.tenant_id, payload.subject_role, payload.staff_id)

    def _setup_entitlements_routes(self):
        """Set up entitlements-specific routes."""
        guard = self.engine.guard
        engine = self.engine

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "entitlements",
                "message": "Realty Access Layer - Entitlements Service",
                "version": "1.0.0",
                "catalog_version": self.catalog.plans.version,
                "capabilities": ["access_check", "navigation", "feature_settings", "staff_permissions"]
            }

        @self.app.get("/plans", response_model=PlanListResponse)
        async def list_plans():
            """Plans in tier order."""
            return PlanListResponse(
                version=self.catalog.plans.version,
                plans=[
                    PlanInfoResponse(
                        plan=info.plan,
                        label=info.label,
                        monthly_price=info.monthly_price,
                        rank=info.plan.rank
                    )
                    for info in self.catalog.plans.plans()
                ]
            )

        @self.app.post("/access/check", response_model=AccessCheckResponse)
        async def check_access(request: AccessCheckRequest):
            """Resolve one capability for one subject."""
            subject = self.subject_from_payload(request)

            with self.metrics.time_operation("access_check_duration_seconds"):
                decision = engine.access.decide(subject, request.capability_key)

            reason = decision.reason.value if decision.reason else None
            self.metrics.record_access_check(request.capability_key, decision.allowed, reason)

            return AccessCheckResponse(
                capability_key=decision.capability_key,
                allowed=decision.allowed,
                entitled=decision.entitled,
                permitted=decision.permitted,
                reason=reason,
                required_plan=decision.required_plan
            )

        @self.app.post("/access/navigation", response_model=NavigationResponse)
        async def navigation(request: NavigationRequest):
            """Visible navigation sections, in display order."""
            subject = self.subject_from_payload(request)
            sections = self.catalog.sidebar if request.surface == "sidebar" else self.catalog.mobile_tabs
            visible = engine.access.visible_sections(subject, sections)

            return NavigationResponse(
                surface=request.surface,
                sections=[
                    NavSectionResponse(key=section.key, label=section.label, path=section.path)
                    for section in visible
                ]
            )

        @self.app.get("/tenants/{tenant_id}/features", response_model=FeatureSettingsResponse)
        async def get_feature_settings(tenant_id: str, subject: AccessSubject = Depends(guard.require("settings"))):
            """Every feature with the tenant's current state, grouped for the settings editor."""
            ensure_same_tenant(subject, tenant_id)
            plan = engine.tenants.get_plan(tenant_id)

            groups = []
            for group in engine.settings.groups(tenant_id, plan):
                groups.append(FeatureGroupResponse(
                    key=group.group.value,
                    label=group.label,
                    features=[
                        FeatureStateResponse(
                            key=state.definition.key,
                            label=state.definition.label,
                            description=state.definition.description,
                            enabled=state.enabled,
                            locked=state.definition.locked,
                            premium=state.definition.premium,
                            uses_ai=state.definition.uses_ai,
                            entitled=state.entitled,
                            required_plan=state.required_plan
                        )
                        for state in group.features
                    ]
                ))

            return FeatureSettingsResponse(tenant_id=tenant_id, plan=plan, groups=groups)

        @self.app.put("/tenants/{tenant_id}/features/{feature_key}", response_model=ToggleResponse)
        async def set_feature_enabled(
            tenant_id: str,
            feature_key: str,
            request: ToggleRequest,
            subject: AccessSubject = Depends(guard.require("settings"))
        ):
            """Switch a non-locked feature on or off."""
            ensure_same_tenant(subject, tenant_id)

            row = engine.toggles.prepare(tenant_id, feature_key, request.enabled)
            if self.persistence is not None:
                if not await self.persistence.upsert_toggle(row):
                    raise ServiceError("Failed to save feature toggle", {"feature_key": feature_key})
            engine.toggles.apply(row)
            self.metrics.record_toggle_change(feature_key, row.is_enabled)

            return ToggleResponse(
                tenant_id=row.tenant_id,
                feature_key=row.feature_key,
                enabled=row.is_enabled,
                updated_at=row.updated_at
            )

        @self.app.put("/tenants/{tenant_id}/plan", response_model=TenantPlanResponse)
        async def set_tenant_plan(
            tenant_id: str,
            request: PlanUpdateRequest,
            subject: AccessSubject = Depends(guard.current_subject())
        ):
            """Upgrade or downgrade a tenant. Owner only."""
            ensure_owner(subject, tenant_id, "change the plan")

            if self.persistence is not None:
                if not await self.persistence.upsert_tenant_plan(tenant_id, request.plan):
                    raise ServiceError("Failed to save tenant plan", {"tenant_id": tenant_id})
            plan = engine.tenants.set_plan(tenant_id, request.plan)

            return TenantPlanResponse(tenant_id=tenant_id, plan=plan)

        @self.app.put("/staff/{staff_id}", response_model=StaffGrantResponse)
        async def put_staff_grant(
            staff_id: str,
            request: StaffGrantRequest,
            subject: AccessSubject = Depends(guard.require("settings"))
        ):
            """Provision a staff account's grant, or replace it. Owner only."""
            ensure_owner(subject, request.tenant_id, "change staff permissions")
            existing = engine.grants.get(staff_id)
            if existing is not None:
                ensure_same_tenant(subject, existing.tenant_id)

            grant = engine.grants.build(
                staff_id,
                request.tenant_id,
                request.staff_role,
                request.permissions,
                is_active=existing.is_active if existing is not None else True
            )
            if self.persistence is not None:
                if not await self.persistence.upsert_staff_grant(grant):
                    raise ServiceError("Failed to save staff grant", {"staff_id": staff_id})
            engine.grants.put(grant)

            return grant_response(grant)

        @self.app.put("/staff/{staff_id}/active", response_model=StaffGrantResponse)
        async def set_staff_active(
            staff_id: str,
            request: StaffActiveRequest,
            subject: AccessSubject = Depends(guard.require("settings"))
        ):
            """Activate or deactivate a staff account without touching its permissions. Owner only."""
            grant = engine.grants.prepare_active(staff_id, request.is_active)
            ensure_owner(subject, grant.tenant_id, "activate or deactivate staff")

            if self.persistence is not None:
                if not await self.persistence.upsert_staff_grant(grant):
                    raise ServiceError("Failed to save staff grant", {"staff_id": staff_id})
            engine.grants.put(grant)

            return grant_response(grant)

        @self.app.delete("/staff/{staff_id}")
        async def delete_staff_grant(staff_id: str, subject: AccessSubject = Depends(guard.require("settings"))):
            """Remove a staff account's grant. Owner only."""
            existing = engine.grants.get(staff_id)
            if existing is None:
                raise NotFoundError(f"Unknown staff '{staff_id}'", {"staff_id": staff_id})
            ensure_owner(subject, existing.tenant_id, "remove staff")

            if self.persistence is not None:
                if not await self.persistence.delete_staff_grant(staff_id):
                    raise ServiceError("Failed to delete staff grant", {"staff_id": staff_id})
            engine.grants.remove(staff_id)

            return {"success": True, "message": "Staff grant deleted successfully"}

    async def _check_dependencies(self):
        """Check entitlements service dependencies."""
        dependencies = {}

        if self.persistence is not None:
            try:
                if await self.persistence.health_check():
                    dependencies["postgres"] = "ok"
                else:
                    dependencies["postgres"] = "error"
            except Exception:
                dependencies["postgres"] = "error"

        return dependencies

    async def start(self):
        """Start entitlements service components and load persisted rows."""
        if self.persistence is None:
            self.logger.info("Entitlements service started without persistence")
            return

        await self.persistence.start()

        tenants = self.engine.tenants.load(await self.persistence.load_tenant_plans())
        toggles = self.engine.toggles.load(await self.persistence.load_toggles())
        grants = self.engine.grants.load(await self.persistence.load_staff_grants())

        self.logger.info(
            "Entitlements service started",
            tenants=tenants,
            toggles=toggles,
            staff_grants=grants
        )

    async def stop(self):
        """Stop entitlements service components."""
        if self.persistence is not None:
            await self.persistence.stop()

        self.logger.info("Entitlements service stopped")


def create_app():
    """Create entitlements service application."""
    service = EntitlementsService()
    return service.app


if __name__ == "__main__":
    service = EntitlementsService()
    service.run()
