"""Roll up per-script waste into per-entity totals."""

from __future__ import annotations

from .models import UNATTRIBUTED, Entity, EntityGroup, WasteItem


class EntityRollup:
    """Accumulate :class:`EntityGroup` totals keyed by classification identity."""

    def __init__(self) -> None:
        # dicts keep insertion order, which is the order groups are reported in.
        self._groups: dict[Entity, EntityGroup] = {}

    def __len__(self) -> int:
        return len(self._groups)

    def add(self, entity: Entity | None, item: WasteItem) -> EntityGroup:
        if entity is None:
            entity = UNATTRIBUTED
        group = self._groups.get(entity)
        if group is None:
            group = EntityGroup(
                entity=entity,
                text=entity.name or "",
                url=entity.homepage or "#",
            )
            self._groups[entity] = group

        group.total_bytes += item.total_bytes
        group.wasted_bytes += item.wasted_bytes
        group.wasted_percent = (
            group.wasted_bytes / group.total_bytes * 100 if group.total_bytes else 0.0
        )
        return group

    def groups(self) -> list[EntityGroup]:
        return list(self._groups.values())
