"""
Entitlements Service package for the Realty Access Layer.

This package decides whether a capability (a navigation section, a page
route or a back-office action) is visible and usable for an agent office
and the user acting inside it. It provides:

- app.main: API surface for access checks, navigation filtering, the
  feature settings editor and staff grants.
- app.catalog: Plan catalog, feature registry and capability maps.
- app.resolvers: Toggle store, entitlement, staff permission and access
  resolvers plus the route guard adapter.
- app.persistence: PostgreSQL write-through storage for tenant rows.

Guidelines:
- Catalog tables are immutable and injected; never reach for globals.
- Unknown feature keys and locked-feature toggles fail loud.
- Keep resolution deterministic and observable (metrics + logs).
"""
