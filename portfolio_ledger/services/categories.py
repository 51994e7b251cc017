"""Tag-based entity selection and category trees."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, Sequence, TypeVar

from ..schemas.portfolio import CategorySchema
from ..models import Activity, CurrentValue, DailyRecord
from .collection import CollectionAggregator, ValuedEntity


class TaggedEntity(ValuedEntity, Protocol):
    @property
    def all_tags(self) -> Sequence[str]:
        ...


T = TypeVar("T", bound=TaggedEntity)


def select_by_tags(entities: Iterable[T], tags: Iterable[str]) -> List[T]:
    """Keep entities sharing at least one tag with ``tags``."""

    wanted = set(tags)
    return [entity for entity in entities if wanted.intersection(entity.all_tags)]


def select_excluding_tags(entities: Iterable[T], tags: Iterable[str]) -> List[T]:
    """Keep entities carrying none of ``tags``."""

    excluded = set(tags)
    return [entity for entity in entities if not excluded.intersection(entity.all_tags)]


class Category:
    """A node of a category tree, valued over the entities it selects.

    A category selects by ``tags`` when present, else drops entities carrying
    any of ``exclude_tags``, else takes every candidate. Sub-categories draw
    their candidates from their parent. Entities not claimed by any
    sub-category are the parent's standalone entities.
    """

    def __init__(
        self,
        definition: CategorySchema,
        universe: Sequence[TaggedEntity],
        aggregator: CollectionAggregator,
        parent: Optional["Category"] = None,
    ):
        self.definition = definition
        self._universe = list(universe)
        self._aggregator = aggregator
        self.parent = parent

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def full_name(self) -> str:
        return self.definition.name

    @property
    def tags(self) -> List[str]:
        return list(self.definition.tags or ())

    @property
    def exclude_tags(self) -> List[str]:
        return list(self.definition.exclude_tags or ())

    @property
    def target_value(self) -> Optional[float]:
        return self.definition.target_value

    def sub_categories(self) -> List["Category"]:
        return [
            Category(child, self._universe, self._aggregator, parent=self)
            for child in self.definition.categories or ()
        ]

    def entities(self) -> List[TaggedEntity]:
        candidates = self.parent.entities() if self.parent else list(self._universe)
        if self.tags:
            return select_by_tags(candidates, self.tags)
        if self.exclude_tags:
            return select_excluding_tags(candidates, self.exclude_tags)
        return candidates

    def standalone_entities(self) -> List[TaggedEntity]:
        selected = self.entities()
        children = self.definition.categories or ()
        if not children:
            return selected
        # a catch-all child claims everything
        if any(child.tags is None and child.exclude_tags is None for child in children):
            return []

        include_tags = {tag for child in children for tag in child.tags or ()}
        exclude_tags = {tag for child in children for tag in child.exclude_tags or ()}
        if include_tags:
            selected = select_excluding_tags(selected, include_tags)
        if exclude_tags:
            selected = select_by_tags(selected, exclude_tags)
        return selected

    def _members(self) -> List[ValuedEntity]:
        return [*self.standalone_entities(), *self.sub_categories()]

    async def current_value(self) -> CurrentValue:
        return await self._aggregator.aggregate_current_value(self._members())

    async def value_history(self) -> List[DailyRecord]:
        return await self._aggregator.aggregate_value_history(self._members())

    async def activities(self) -> List[Activity]:
        return await self._aggregator.aggregate_activities(self._members())


__all__ = [
    "TaggedEntity",
    "select_by_tags",
    "select_excluding_tags",
    "Category",
]
