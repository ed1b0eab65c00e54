"""
PostgreSQL persistence layer for the Entitlements Service.
"""

import json
from typing import Optional, List, Tuple

import asyncpg

from shared.logging import get_logger
from shared.errors import AccessLayerException, ServiceError
from ..catalog.models import FeatureToggle, Plan, StaffPermissionGrant


class PostgreSQLPersistence:
    """Write-through storage for tenant plans, toggle rows and staff grants."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("entitlements.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise AccessLayerException("POSTGRES_START_FAILED", str(e))

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS tenant_plans (
                    tenant_id VARCHAR(255) PRIMARY KEY,
                    plan VARCHAR(20) NOT NULL,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS feature_toggles (
                    tenant_id VARCHAR(255) NOT NULL,
                    feature_key VARCHAR(100) NOT NULL,
                    is_enabled BOOLEAN NOT NULL,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (tenant_id, feature_key)
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS staff_grants (
                    staff_id VARCHAR(255) PRIMARY KEY,
                    tenant_id VARCHAR(255) NOT NULL,
                    staff_role VARCHAR(50),
                    permissions JSONB NOT NULL DEFAULT '{}',
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)
            await conn.execute("""
                ALTER TABLE staff_grants ADD COLUMN IF NOT EXISTS is_active BOOLEAN NOT NULL DEFAULT TRUE;
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_staff_grants_tenant ON staff_grants(tenant_id);
            """)

    async def upsert_tenant_plan(self, tenant_id: str, plan: Plan) -> bool:
        """Save a tenant's active plan."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO tenant_plans (tenant_id, plan, updated_at)
                    VALUES ($1, $2, NOW())
                    ON CONFLICT (tenant_id) DO UPDATE SET
                        plan = EXCLUDED.plan,
                        updated_at = EXCLUDED.updated_at
                """, tenant_id, Plan(plan).value)

                self.logger.info("Tenant plan saved", tenant_id=tenant_id, plan=Plan(plan).value)
                return True

        except Exception as e:
            self.logger.error("Error saving tenant plan", tenant_id=tenant_id, error=str(e))
            return False

    async def upsert_toggle(self, toggle: FeatureToggle) -> bool:
        """Save a toggle row; at most one row per (tenant_id, feature_key)."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO feature_toggles (tenant_id, feature_key, is_enabled, updated_at)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (tenant_id, feature_key) DO UPDATE SET
                        is_enabled = EXCLUDED.is_enabled,
                        updated_at = EXCLUDED.updated_at
                """, toggle.tenant_id, toggle.feature_key, toggle.is_enabled, toggle.updated_at)

                self.logger.info(
                    "Toggle saved",
                    tenant_id=toggle.tenant_id,
                    feature_key=toggle.feature_key,
                    enabled=toggle.is_enabled
                )
                return True

        except Exception as e:
            self.logger.error(
                "Error saving toggle",
                tenant_id=toggle.tenant_id,
                feature_key=toggle.feature_key,
                error=str(e)
            )
            return False

    async def upsert_staff_grant(self, grant: StaffPermissionGrant) -> bool:
        """Save a staff member's permission grant."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO staff_grants (staff_id, tenant_id, staff_role, permissions, is_active, updated_at)
                    VALUES ($1, $2, $3, $4::jsonb, $5, NOW())
                    ON CONFLICT (staff_id) DO UPDATE SET
                        tenant_id = EXCLUDED.tenant_id,
                        staff_role = EXCLUDED.staff_role,
                        permissions = EXCLUDED.permissions,
                        is_active = EXCLUDED.is_active,
                        updated_at = EXCLUDED.updated_at
                """, grant.staff_id, grant.tenant_id,
                    grant.staff_role.value if grant.staff_role else None,
                    json.dumps(grant.as_dict()), grant.is_active)

                self.logger.info("Staff grant saved", staff_id=grant.staff_id, tenant_id=grant.tenant_id)
                return True

        except Exception as e:
            self.logger.error("Error saving staff grant", staff_id=grant.staff_id, error=str(e))
            return False

    async def delete_staff_grant(self, staff_id: str) -> bool:
        """Delete a staff member's grant. A grant with no stored row counts as deleted."""
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute("""
                    DELETE FROM staff_grants WHERE staff_id = $1
                """, staff_id)

                if result == "DELETE 1":
                    self.logger.info("Staff grant deleted", staff_id=staff_id)
                else:
                    self.logger.warning("Staff grant had no stored row", staff_id=staff_id)
                return True

        except Exception as e:
            self.logger.error("Error deleting staff grant", staff_id=staff_id, error=str(e))
            return False

    async def load_tenant_plans(self) -> List[Tuple[str, Plan]]:
        """Load every tenant's plan."""
        rows = await self._fetch("SELECT tenant_id, plan FROM tenant_plans", "tenant plans")
        return [(row['tenant_id'], Plan(row['plan'])) for row in rows]

    async def load_toggles(self) -> List[FeatureToggle]:
        """Load every toggle row."""
        rows = await self._fetch(
            "SELECT tenant_id, feature_key, is_enabled, updated_at FROM feature_toggles",
            "toggles"
        )
        return [self._row_to_toggle(row) for row in rows]

    async def load_staff_grants(self) -> List[StaffPermissionGrant]:
        """Load every staff grant."""
        rows = await self._fetch(
            "SELECT staff_id, tenant_id, staff_role, permissions, is_active FROM staff_grants",
            "staff grants"
        )
        return [self._row_to_grant(row) for row in rows]

    async def _fetch(self, query: str, what: str):
        # Start-up loads must not degrade to an empty store
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetch(query)
        except Exception as e:
            self.logger.error(f"Error loading {what}", error=str(e))
            raise ServiceError(f"Failed to load {what}", {"error": str(e)})

    def _row_to_toggle(self, row) -> FeatureToggle:
        """Convert database row to FeatureToggle."""
        return FeatureToggle(
            tenant_id=row['tenant_id'],
            feature_key=row['feature_key'],
            is_enabled=row['is_enabled'],
            updated_at=row['updated_at']
        )

    def _row_to_grant(self, row) -> StaffPermissionGrant:
        """Convert database row to StaffPermissionGrant."""
        permissions = row['permissions']
        if isinstance(permissions, str):
            permissions = json.loads(permissions)

        return StaffPermissionGrant.from_mapping(
            staff_id=row['staff_id'],
            tenant_id=row['tenant_id'],
            staff_role=row['staff_role'],
            permissions=permissions,
            is_active=row['is_active']
        )

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except Exception:
            return False
