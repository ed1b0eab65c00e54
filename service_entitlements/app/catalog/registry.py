"""
Feature registry: the single source of truth for feature metadata.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from shared.errors import UnknownFeatureError, ValidationError
from .models import FeatureDefinition, FeatureGroup


@dataclass(frozen=True)
class GroupDefinitions:
    """One settings-editor group and its features, in display order."""
    group: FeatureGroup
    label: str
    features: Tuple[FeatureDefinition, ...]


class FeatureRegistry:
    """Immutable, ordered catalog of every feature definition.

    Built once at process start and injected into the resolvers; tests
    build their own registries with fabricated definitions.
    """

    def __init__(self, groups: Sequence[Tuple[FeatureGroup, str, Iterable[FeatureDefinition]]]):
        ordered: List[GroupDefinitions] = []
        by_key: Dict[str, FeatureDefinition] = {}
        seen_groups = set()

        for group, label, definitions in groups:
            group = FeatureGroup(group)
            if group in seen_groups:
                raise ValidationError("Duplicate feature group", {"group": group.value})
            seen_groups.add(group)

            definitions = tuple(definitions)
            for definition in definitions:
                if definition.key in by_key:
                    raise ValidationError("Duplicate feature key", {"feature_key": definition.key})
                if definition.group != group:
                    raise ValidationError(
                        "Feature registered under the wrong group",
                        {"feature_key": definition.key, "group": group.value}
                    )
                by_key[definition.key] = definition

            ordered.append(GroupDefinitions(group=group, label=label, features=definitions))

        self._groups: Tuple[GroupDefinitions, ...] = tuple(ordered)
        self._by_key: Mapping[str, FeatureDefinition] = MappingProxyType(by_key)

    def definitions_by_group(self) -> Tuple[GroupDefinitions, ...]:
        """Groups in display order, each with its features in display order."""
        return self._groups

    def get(self, feature_key: str) -> FeatureDefinition:
        """Look up a definition; unknown keys raise ``UnknownFeatureError``."""
        try:
            return self._by_key[feature_key]
        except KeyError:
            raise UnknownFeatureError(feature_key) from None

    def all(self) -> List[FeatureDefinition]:
        """Every definition in registry order."""
        return [definition for group in self._groups for definition in group.features]

    def __contains__(self, feature_key: str) -> bool:
        return feature_key in self._by_key

    def __len__(self) -> int:
        return len(self._by_key)
