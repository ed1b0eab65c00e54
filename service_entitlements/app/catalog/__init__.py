"""
Catalog package.

Static, versioned tables the engine is built from:

- models: Plan, FeatureDefinition, StaffPermissionKey, AccessSubject and
  the other value types shared by every resolver.
- plans: PlanCatalog (minimum tier per feature, tier ordering).
- registry: FeatureRegistry (grouped, ordered feature metadata).
- capabilities: CapabilityMap (capability -> features / staff permission).
- defaults: the product's default tables and ``build_default_catalog``.
"""

from .capabilities import CapabilityMap
from .defaults import Catalog, build_default_catalog
from .plans import PlanCatalog
from .registry import FeatureRegistry, GroupDefinitions
