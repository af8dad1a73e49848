"""Collection, label and genre tag aggregation."""

from __future__ import annotations

from typing import Iterable

from ..errors import MissingRuleContextError
from ..models import MediaItem, RuleContext, Tag
from ..utils import normalize_tag, trimmed
from .metadata import ResolvedMetadata


class CollectionLabelAggregator:
    """Combine tags across an item and its ancestors."""

    @staticmethod
    def managed_name(rule_context: RuleContext | None) -> str:
        if rule_context is None:
            raise MissingRuleContextError(
                "Collection properties need the rule that is being evaluated"
            )
        return rule_context.managed_collection_name

    def count_unmanaged(
        self, tags: Iterable[Tag] | None, rule_context: RuleContext | None
    ) -> int:
        """Count tag instances other than the rule's own managed collection."""

        managed = normalize_tag(self.managed_name(rule_context))
        return sum(1 for entry in tags or () if normalize_tag(entry.tag) != managed)

    @staticmethod
    def names(tags: Iterable[Tag] | None) -> list[str]:
        return trimmed(entry.tag for entry in tags or ())

    @staticmethod
    def combined_collections(resolved: ResolvedMetadata) -> list[Tag]:
        """Item, parent and grandparent collection tags; duplicates are kept."""

        combined: list[Tag] = []
        for entry in resolved.chain:
            combined.extend(entry.collections or ())
        return combined

    @staticmethod
    def top_level(resolved: ResolvedMetadata) -> MediaItem:
        """Return the show or movie that carries genres and labels."""

        metadata = resolved.metadata
        if metadata.type == "episode":
            ancestor, relation = resolved.grandparent, "grandparent"
        elif metadata.type == "season":
            ancestor, relation = resolved.parent, "parent"
        else:
            return metadata
        if ancestor is None:
            raise LookupError(
                f"{metadata.type} {metadata.rating_key} has no resolvable {relation}"
            )
        return ancestor

    def genres(self, resolved: ResolvedMetadata) -> list[str] | None:
        top = self.top_level(resolved)
        if top.genres is None:
            return None
        return [entry.tag for entry in top.genres]

    def labels(self, resolved: ResolvedMetadata) -> list[str]:
        top = self.top_level(resolved)
        return [entry.tag for entry in top.labels or ()]
