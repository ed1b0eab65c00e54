"""
Plan catalog: minimum tier per feature and tier ordering.
"""

from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional

from shared.errors import ValidationError
from .models import Plan, PlanInfo, PLAN_RANK


class PlanCatalog:
    """Versioned table of feature key -> minimum required plan."""

    def __init__(self, version: str, required_plans: Mapping[str, Plan],
                 plan_info: Mapping[Plan, PlanInfo]):
        missing = [plan.value for plan in Plan if plan not in plan_info]
        if missing:
            raise ValidationError("Plan info missing for plans", {"plans": missing})

        self.version = version
        self._required: Mapping[str, Plan] = MappingProxyType(
            {key: Plan(plan) for key, plan in required_plans.items()}
        )
        self._info: Mapping[Plan, PlanInfo] = MappingProxyType(dict(plan_info))

    @classmethod
    def from_registry(cls, registry, version: str, plan_info: Mapping[Plan, PlanInfo]) -> "PlanCatalog":
        """Build the catalog from the ``requires_plan`` of every registered feature."""
        required = {
            definition.key: definition.requires_plan
            for definition in registry.all()
            if definition.requires_plan is not None
        }
        return cls(version, required, plan_info)

    def required_plan(self, feature_key: str) -> Optional[Plan]:
        """Minimum plan for a feature; None means every plan (also for unknown keys)."""
        return self._required.get(feature_key)

    @staticmethod
    def at_least(plan: Plan, minimum: Plan) -> bool:
        """True when ``plan`` ranks at or above ``minimum``."""
        return PLAN_RANK[Plan(plan)] >= PLAN_RANK[Plan(minimum)]

    def plans(self) -> List[PlanInfo]:
        """All plans in tier order."""
        return [self._info[plan] for plan in sorted(Plan, key=lambda p: PLAN_RANK[p])]

    def info(self, plan: Plan) -> PlanInfo:
        return self._info[Plan(plan)]

    def next_plan(self, plan: Plan) -> Optional[Plan]:
        """The tier directly above ``plan``, or None at the top."""
        rank = PLAN_RANK[Plan(plan)]
        for candidate in Plan:
            if PLAN_RANK[candidate] == rank + 1:
                return candidate
        return None

    def features_for(self, plan: Plan) -> FrozenSet[str]:
        """Restricted feature keys entitled by ``plan`` (cumulative over lower tiers)."""
        return frozenset(
            key for key, required in self._required.items()
            if self.at_least(plan, required)
        )

    def cheapest(self, plans) -> Optional[Plan]:
        """Lowest-ranked plan among ``plans``."""
        ranked = sorted((Plan(p) for p in plans if p is not None), key=lambda p: PLAN_RANK[p])
        return ranked[0] if ranked else None
