"""Data models for unused-js."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Script:
    script_id: str
    url: str


@dataclass(eq=False)
class NetworkRecord:
    url: str
    transfer_size: int = 0
    resource_size: int = 0
    resource_type: str = "Script"
    redirect_destination: NetworkRecord | None = None


@dataclass(frozen=True)
class BundleSizes:
    files: dict[str, int]
    unmapped_bytes: int
    total_bytes: int = 0


@dataclass(frozen=True)
class SizesError:
    """Stands in for BundleSizes when the per-file size computation failed."""

    error_message: str


@dataclass(frozen=True)
class Bundle:
    script_id: str
    sizes: Union[BundleSizes, SizesError]
    source_urls: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UnusedJsSummary:
    script_id: str
    total_bytes: int
    wasted_bytes: int
    wasted_percent: float
    sources_wasted_bytes: dict[str, int] | None = None


# Entity classification is a tagged variant: either a KnownEntity or the
# UNATTRIBUTED sentinel. Both hash by identity so groups never merge on name.


@dataclass(frozen=True, eq=False)
class KnownEntity:
    name: str
    homepage: str | None = None


class _Unattributed:
    name = None
    homepage = None

    def __repr__(self) -> str:
        return "UNATTRIBUTED"


UNATTRIBUTED = _Unattributed()

Entity = Union[KnownEntity, _Unattributed]


@dataclass(frozen=True)
class SubItem:
    source: str
    source_bytes: int
    source_wasted_bytes: int


@dataclass(frozen=True)
class WasteItem:
    url: str
    total_bytes: int
    wasted_bytes: int
    wasted_percent: float
    entity: str | None = None
    sub_items: list[SubItem] | None = None


@dataclass
class EntityGroup:
    entity: Entity
    text: str
    url: str
    total_bytes: int = 0
    wasted_bytes: int = 0
    wasted_percent: float = 0.0
    group_by: str = "entity"


@dataclass(frozen=True)
class SubItemsHeading:
    key: str
    value_type: str | None = None


@dataclass(frozen=True)
class ColumnHeading:
    key: str
    value_type: str
    label: str
    sub_items_heading: SubItemsHeading | None = None


@dataclass
class WasteReport:
    items: list[WasteItem] = field(default_factory=list)
    groups: list[EntityGroup] = field(default_factory=list)
    headings: list[ColumnHeading] = field(default_factory=list)

    @property
    def total_wasted_bytes(self) -> int:
        return sum(item.wasted_bytes for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the column headings refer to."""
        return {
            "items": [_item_to_dict(item) for item in self.items],
            "groups": [
                {
                    "groupBy": g.group_by,
                    "entity": g.text,
                    "url": {"type": "link", "text": g.text, "url": g.url},
                    "totalBytes": g.total_bytes,
                    "wastedBytes": g.wasted_bytes,
                    "wastedPercent": g.wasted_percent,
                }
                for g in self.groups
            ],
            "headings": [
                {
                    "key": h.key,
                    "valueType": h.value_type,
                    "label": h.label,
                    "subItemsHeading": (
                        {"key": h.sub_items_heading.key, "valueType": h.sub_items_heading.value_type}
                        if h.sub_items_heading
                        else None
                    ),
                }
                for h in self.headings
            ],
        }


def _item_to_dict(item: WasteItem) -> dict[str, Any]:
    data: dict[str, Any] = {
        "url": item.url,
        "totalBytes": item.total_bytes,
        "wastedBytes": item.wasted_bytes,
        "wastedPercent": item.wasted_percent,
        "entity": item.entity,
    }
    if item.sub_items is not None:
        data["subItems"] = {
            "type": "subitems",
            "items": [
                {
                    "source": s.source,
                    "sourceBytes": s.source_bytes,
                    "sourceWastedBytes": s.source_wasted_bytes,
                }
                for s in item.sub_items
            ],
        }
    return data
