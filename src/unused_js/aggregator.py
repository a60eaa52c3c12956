"""Assemble the unused JavaScript report from collected artifacts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .artifacts.network import estimate_transfer_size, get_request_for_script
from .artifacts.provider import ArtifactProvider
from .config import ReportOptions
from .entities import EntityRollup
from .models import (
    Bundle,
    ColumnHeading,
    NetworkRecord,
    Script,
    SubItemsHeading,
    UnusedJsSummary,
    WasteReport,
)
from .waste import TransferSizeEstimator, build_waste_item

logger = logging.getLogger(__name__)


def build_headings() -> list[ColumnHeading]:
    return [
        ColumnHeading(
            key="url",
            value_type="url",
            label="URL",
            sub_items_heading=SubItemsHeading(key="source", value_type="code"),
        ),
        ColumnHeading(
            key="totalBytes",
            value_type="bytes",
            label="Transfer Size",
            sub_items_heading=SubItemsHeading(key="sourceBytes"),
        ),
        ColumnHeading(
            key="wastedBytes",
            value_type="bytes",
            label="Potential Savings",
            sub_items_heading=SubItemsHeading(key="sourceWastedBytes"),
        ),
    ]


async def _fetch_summaries(
    provider: ArtifactProvider,
    candidates: list[tuple[str, Any, Script, NetworkRecord, Bundle | None]],
    max_concurrency: int,
) -> list[UnusedJsSummary]:
    """Request every summary, returned in candidate order.

    The first failure cancels the outstanding requests and propagates.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def fetch(script_id: str, coverage: Any, bundle: Bundle | None) -> UnusedJsSummary:
        async with semaphore:
            return await provider.unused_js_summary(script_id, coverage, bundle)

    tasks = [
        asyncio.ensure_future(fetch(script_id, coverage, bundle))
        for script_id, coverage, _, _, bundle in candidates
    ]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def aggregate_unused_js_report(
    provider: ArtifactProvider,
    options: ReportOptions | dict[str, Any] | None = None,
    estimator: TransferSizeEstimator = estimate_transfer_size,
) -> WasteReport:
    """Build a :class:`WasteReport` of scripts that waste more than the threshold.

    Items keep coverage iteration order; entity groups keep first-seen order.
    """
    if not isinstance(options, ReportOptions):
        options = ReportOptions.from_mapping(options)

    bundles = await provider.js_bundles()
    classification = await provider.classify_entities()
    scripts_by_id = {}
    for script in provider.scripts:
        scripts_by_id.setdefault(script.script_id, script)
    bundles_by_id = {}
    for bundle in bundles:
        bundles_by_id.setdefault(bundle.script_id, bundle)

    candidates = []
    for script_id, coverage in provider.coverage.items():
        script = scripts_by_id.get(script_id)
        if script is None:
            logger.debug("No script descriptor for coverage of %s, skipping", script_id)
            continue

        network_record = get_request_for_script(provider.network_records, script)
        if network_record is None:
            logger.debug("No network record for %s, skipping", script.url)
            continue

        candidates.append(
            (script_id, coverage, script, network_record, bundles_by_id.get(script_id))
        )

    summaries = await _fetch_summaries(provider, candidates, options.max_concurrency)

    rollup = EntityRollup()
    items = []
    for (_, _, script, network_record, bundle), summary in zip(candidates, summaries):
        if summary.wasted_bytes == 0 or summary.total_bytes == 0:
            logger.debug("Nothing unused in %s, skipping", script.url)
            continue

        entity = classification.entity_for(script.url)
        item = build_waste_item(
            script.url,
            summary,
            network_record,
            bundle,
            entity_name=entity.name,
            bundle_source_unused_threshold=options.bundle_source_unused_threshold,
            estimator=estimator,
        )

        if item.wasted_bytes <= options.unused_threshold:
            logger.debug(
                "%s wastes %d bytes, not above threshold %s",
                script.url,
                item.wasted_bytes,
                options.unused_threshold,
            )
            continue

        items.append(item)
        rollup.add(entity, item)

    logger.info(
        "Reported %d of %d script(s) across %d entity group(s)",
        len(items),
        len(provider.coverage),
        len(rollup),
    )
    return WasteReport(items=items, groups=rollup.groups(), headings=build_headings())
