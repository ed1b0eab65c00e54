"""
Tenant plan store.
"""

import threading
from typing import Dict, Iterable, Tuple

from shared.errors import NotFoundError
from shared.logging import get_logger
from ..catalog.models import Plan


class TenantStore:
    """Active plan per tenant; upgrades and downgrades are last-writer-wins."""

    def __init__(self):
        self.logger = get_logger("entitlements.tenants")
        self._plans: Dict[str, Plan] = {}
        self._lock = threading.Lock()

    def load(self, rows: Iterable[Tuple[str, Plan]]) -> int:
        loaded = {tenant_id: Plan(plan) for tenant_id, plan in rows}
        with self._lock:
            self._plans = loaded
        self.logger.info("Tenant plans loaded", count=len(loaded))
        return len(loaded)

    def get_plan(self, tenant_id: str) -> Plan:
        with self._lock:
            plan = self._plans.get(tenant_id)
        if plan is None:
            raise NotFoundError(f"Unknown tenant '{tenant_id}'", {"tenant_id": tenant_id}, code="UNKNOWN_TENANT")
        return plan

    def set_plan(self, tenant_id: str, plan: Plan) -> Plan:
        plan = Plan(plan)
        with self._lock:
            previous = self._plans.get(tenant_id)
            self._plans[tenant_id] = plan
        self.logger.info(
            "Tenant plan changed",
            tenant_id=tenant_id,
            previous_plan=previous.value if previous else None,
            plan=plan.value
        )
        return plan
