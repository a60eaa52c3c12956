"""Artifact providers: the inputs the report is computed from."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlsplit

from ..errors import ArtifactError
from ..models import (
    UNATTRIBUTED,
    Bundle,
    BundleSizes,
    Entity,
    KnownEntity,
    NetworkRecord,
    Script,
    SizesError,
    UnusedJsSummary,
)
from .cache import RequestCache

logger = logging.getLogger(__name__)


@dataclass
class EntityClassification:
    by_url: dict[str, KnownEntity] = field(default_factory=dict)

    def entity_for(self, url: str) -> Entity:
        return self.by_url.get(url, UNATTRIBUTED)


class ArtifactProvider(Protocol):
    coverage: Mapping[str, Any]
    scripts: list[Script]
    network_records: list[NetworkRecord]

    async def js_bundles(self) -> list[Bundle]: ...

    async def unused_js_summary(
        self, script_id: str, coverage: Any, bundle: Bundle | None
    ) -> UnusedJsSummary: ...

    async def classify_entities(self) -> EntityClassification: ...


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    try:
        return data[key]
    except (KeyError, TypeError):
        raise ArtifactError(f"{where} is missing required field '{key}'") from None


def _parse_network_records(raw: list[dict]) -> list[NetworkRecord]:
    records = [
        NetworkRecord(
            url=_require(r, "url", "network record"),
            transfer_size=r.get("transferSize") or 0,
            resource_size=r.get("resourceSize") or 0,
            resource_type=r.get("resourceType") or "Script",
        )
        for r in raw
    ]
    by_url: dict[str, NetworkRecord] = {}
    for record in records:
        by_url.setdefault(record.url, record)
    for record, r in zip(records, raw):
        target = r.get("redirectDestination")
        if target is not None:
            record.redirect_destination = by_url.get(target)
    return records


def _byte_count(value: Any, where: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ArtifactError(f"malformed {where}: expected a byte count, got {value!r}")
    return value


def _parse_bundle(raw: dict) -> Bundle:
    script_id = str(_require(raw, "scriptId", "bundle"))
    where = f"bundle for script {script_id}"
    sizes = raw.get("sizes") or {}
    if not isinstance(sizes, Mapping):
        raise ArtifactError(f"malformed {where}: sizes must be an object")
    if "errorMessage" in sizes:
        parsed_sizes: BundleSizes | SizesError = SizesError(sizes["errorMessage"])
    else:
        files = sizes.get("files") or {}
        if not isinstance(files, Mapping):
            raise ArtifactError(f"malformed {where}: files must be an object")
        parsed_sizes = BundleSizes(
            files={source: _byte_count(size, where) for source, size in files.items()},
            unmapped_bytes=_byte_count(sizes.get("unmappedBytes"), where),
            total_bytes=_byte_count(sizes.get("totalBytes"), where),
        )
    return Bundle(
        script_id=script_id,
        sizes=parsed_sizes,
        source_urls=list(raw.get("sourceURLs") or []),
    )


class JsonArtifactProvider:
    """Serve pre-computed artifacts loaded from a JSON document.

    Every lookup goes through a :class:`RequestCache`, so repeated or
    concurrent requests for the same key share a single computation.
    """

    def __init__(self, data: Mapping[str, Any], cache: RequestCache | None = None) -> None:
        if not isinstance(data, Mapping):
            raise ArtifactError("artifact document must be a JSON object")
        self._data = data
        self.cache = cache or RequestCache()
        self.coverage: dict[str, Any] = {
            str(k): v for k, v in (data.get("jsUsage") or {}).items()
        }
        self.scripts = [
            Script(
                script_id=str(_require(s, "scriptId", "script")),
                url=_require(s, "url", "script"),
            )
            for s in data.get("scripts") or []
        ]
        self.network_records = _parse_network_records(data.get("networkRecords") or [])

    @classmethod
    def from_file(cls, path: str | Path) -> JsonArtifactProvider:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ArtifactError(f"cannot read artifacts from {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ArtifactError(f"invalid JSON in {path}: {e}") from e
        logger.debug("Loaded artifacts from %s", path)
        return cls(data)

    async def js_bundles(self) -> list[Bundle]:
        async def compute() -> list[Bundle]:
            return [_parse_bundle(b) for b in self._data.get("bundles") or []]

        return await self.cache.request("JSBundles", None, compute)

    async def unused_js_summary(
        self, script_id: str, coverage: Any, bundle: Bundle | None
    ) -> UnusedJsSummary:
        # Coverage is opaque here; the summary was computed when the artifact was written.
        async def compute() -> UnusedJsSummary:
            summaries = self._data.get("unusedJsSummaries") or {}
            raw = summaries.get(script_id)
            if raw is None:
                raise ArtifactError(f"no unused JavaScript summary for script {script_id}")
            where = f"summary for script {script_id}"
            try:
                sources = raw.get("sourcesWastedBytes")
                total_bytes = int(_require(raw, "totalBytes", where))
                wasted_bytes = int(_require(raw, "wastedBytes", where))
                wasted_percent = raw.get("wastedPercent")
                if wasted_percent is None:
                    wasted_percent = wasted_bytes / total_bytes * 100 if total_bytes else 0.0
                return UnusedJsSummary(
                    script_id=script_id,
                    total_bytes=total_bytes,
                    wasted_bytes=wasted_bytes,
                    wasted_percent=float(wasted_percent),
                    sources_wasted_bytes=(
                        {s: _byte_count(v, where) for s, v in dict(sources).items()}
                        if sources is not None
                        else None
                    ),
                )
            except (TypeError, ValueError, AttributeError) as e:
                raise ArtifactError(f"malformed {where}: {e}") from e

        return await self.cache.request("UnusedJavascriptSummary", script_id, compute)

    async def classify_entities(self) -> EntityClassification:
        async def compute() -> EntityClassification:
            by_origin: dict[str, KnownEntity] = {}
            for raw in self._data.get("entities") or []:
                entity = KnownEntity(
                    name=_require(raw, "name", "entity"),
                    homepage=raw.get("homepage"),
                )
                for origin in raw.get("origins") or []:
                    by_origin.setdefault(_origin(origin), entity)

            classification = EntityClassification()
            urls = [s.url for s in self.scripts] + [r.url for r in self.network_records]
            for url in urls:
                entity = by_origin.get(_origin(url))
                if entity is not None:
                    classification.by_url[url] = entity
            return classification

        return await self.cache.request("EntityClassification", None, compute)
