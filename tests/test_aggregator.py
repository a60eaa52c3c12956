"""Tests for the aggregator module."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from unused_js.aggregator import aggregate_unused_js_report, build_headings
from unused_js.artifacts.provider import EntityClassification, JsonArtifactProvider
from unused_js.config import ReportOptions
from unused_js.errors import ArtifactError
from unused_js.models import (
    Bundle,
    BundleSizes,
    KnownEntity,
    NetworkRecord,
    Script,
    SizesError,
    UnusedJsSummary,
)


def _summary(script_id: str, total: int, wasted: int, sources=None) -> UnusedJsSummary:
    return UnusedJsSummary(
        script_id=script_id,
        total_bytes=total,
        wasted_bytes=wasted,
        wasted_percent=wasted / total * 100 if total else 0.0,
        sources_wasted_bytes=sources,
    )


def _make_provider(scripts, records, summaries, bundles=(), by_url=None, coverage=None):
    provider = AsyncMock(spec=JsonArtifactProvider)
    provider.scripts = scripts
    provider.network_records = records
    provider.coverage = coverage if coverage is not None else {
        s.script_id: {"functions": []} for s in scripts
    }
    provider.js_bundles.return_value = list(bundles)
    provider.classify_entities.return_value = EntityClassification(by_url=by_url or {})

    async def summary_side_effect(script_id, coverage, bundle):
        return summaries[script_id]

    provider.unused_js_summary.side_effect = summary_side_effect
    return provider


def _single_script(transfer_size: int, total: int = 100_000, wasted: int = 50_000):
    script = Script(script_id="1", url="https://example.com/app.js")
    record = NetworkRecord(url=script.url, transfer_size=transfer_size)
    return _make_provider([script], [record], {"1": _summary("1", total, wasted)})


@pytest.mark.asyncio
async def test_script_included_at_full_transfer():
    report = await aggregate_unused_js_report(_single_script(transfer_size=100_000))
    assert len(report.items) == 1
    item = report.items[0]
    assert item.url == "https://example.com/app.js"
    assert item.total_bytes == 100_000
    assert item.wasted_bytes == 50_000
    assert item.wasted_percent == 50.0


@pytest.mark.asyncio
async def test_script_excluded_after_scaling():
    report = await aggregate_unused_js_report(_single_script(transfer_size=10_000))
    assert report.items == []
    assert report.groups == []
    # An empty report still carries headings.
    assert len(report.headings) == 3


@pytest.mark.asyncio
async def test_threshold_boundary():
    at = await aggregate_unused_js_report(_single_script(100_000, wasted=20_480))
    assert at.items == []
    above = await aggregate_unused_js_report(_single_script(100_000, wasted=20_481))
    assert len(above.items) == 1


@pytest.mark.asyncio
async def test_custom_threshold_from_mapping():
    provider = _single_script(transfer_size=10_000)
    report = await aggregate_unused_js_report(provider, options={"unusedThreshold": 1000})
    assert len(report.items) == 1
    assert report.items[0].wasted_bytes == 5_000


@pytest.mark.asyncio
async def test_two_scripts_same_entity_grouped():
    entity = KnownEntity(name="Acme", homepage="https://acme.test")
    scripts = [
        Script(script_id="1", url="https://cdn.acme.test/a.js"),
        Script(script_id="2", url="https://cdn.acme.test/b.js"),
    ]
    records = [NetworkRecord(url=s.url, transfer_size=60_000) for s in scripts]
    summaries = {
        "1": _summary("1", 60_000, 30_000),
        "2": _summary("2", 60_000, 30_000),
    }
    provider = _make_provider(
        scripts, records, summaries, by_url={s.url: entity for s in scripts}
    )
    report = await aggregate_unused_js_report(provider)

    assert [i.entity for i in report.items] == ["Acme", "Acme"]
    assert len(report.groups) == 1
    group = report.groups[0]
    assert group.entity is entity
    assert group.url == "https://acme.test"
    assert group.wasted_bytes == 60_000
    assert group.total_bytes == 120_000
    assert group.wasted_percent == 50.0


@pytest.mark.asyncio
async def test_bundle_sub_items_filtered_by_source_threshold():
    script = Script(script_id="1", url="https://example.com/bundle.js")
    record = NetworkRecord(url=script.url, transfer_size=100_000)
    bundle = Bundle(
        script_id="1",
        sizes=BundleSizes(files={"a.js": 1000, "b.js": 9000}, unmapped_bytes=0),
        source_urls=["a.js", "b.js"],
    )
    summaries = {"1": _summary("1", 100_000, 50_000, sources={"a.js": 100, "b.js": 8000})}
    provider = _make_provider([script], [record], summaries, bundles=[bundle])

    report = await aggregate_unused_js_report(provider)

    sub_items = report.items[0].sub_items
    assert [s.source for s in sub_items] == ["b.js"]
    assert sub_items[0].source_bytes == 9000
    assert sub_items[0].source_wasted_bytes == 8000
    provider.unused_js_summary.assert_awaited_once_with("1", {"functions": []}, bundle)


@pytest.mark.asyncio
async def test_bundle_size_error_keeps_item_without_sub_items():
    script = Script(script_id="1", url="https://example.com/bundle.js")
    record = NetworkRecord(url=script.url, transfer_size=100_000)
    bundle = Bundle(script_id="1", sizes=SizesError("mapping out of range"))
    summaries = {"1": _summary("1", 100_000, 50_000, sources={"a.js": 40_000})}
    provider = _make_provider([script], [record], summaries, bundles=[bundle])

    report = await aggregate_unused_js_report(provider)

    assert len(report.items) == 1
    assert report.items[0].sub_items is None


@pytest.mark.asyncio
async def test_skips_missing_script_and_network_record():
    known = Script(script_id="1", url="https://example.com/app.js")
    unfetched = Script(script_id="2", url="https://example.com/inline.js")
    provider = _make_provider(
        [known, unfetched],
        [NetworkRecord(url=known.url, transfer_size=100_000)],
        {"1": _summary("1", 100_000, 50_000)},
        coverage={"1": {}, "2": {}, "orphan": {}},
    )

    report = await aggregate_unused_js_report(provider)

    assert [i.url for i in report.items] == [known.url]
    # Only the script with a network record is summarized.
    assert provider.unused_js_summary.await_count == 1


@pytest.mark.asyncio
async def test_skips_zero_waste_and_zero_total():
    scripts = [Script(script_id=str(i), url=f"https://example.com/{i}.js") for i in range(3)]
    records = [NetworkRecord(url=s.url, transfer_size=100_000) for s in scripts]
    summaries = {
        "0": _summary("0", 100_000, 0),
        "1": _summary("1", 0, 0),
        "2": _summary("2", 100_000, 30_000),
    }
    report = await aggregate_unused_js_report(_make_provider(scripts, records, summaries))
    assert [i.url for i in report.items] == ["https://example.com/2.js"]


@pytest.mark.asyncio
async def test_summary_failure_propagates():
    script = Script(script_id="1", url="https://example.com/app.js")
    provider = _make_provider(
        [script], [NetworkRecord(url=script.url, transfer_size=100)], {}
    )
    provider.unused_js_summary.side_effect = ArtifactError("malformed coverage")

    with pytest.raises(ArtifactError, match="malformed coverage"):
        await aggregate_unused_js_report(provider)


@pytest.mark.asyncio
async def test_items_and_groups_keep_input_order():
    first = KnownEntity(name="First")
    second = KnownEntity(name="Second")
    scripts = [Script(script_id=str(i), url=f"https://site{i}.test/app.js") for i in range(4)]
    records = [NetworkRecord(url=s.url, transfer_size=100_000) for s in scripts]
    # Waste grows with position, so any sort by waste would reverse the order.
    summaries = {s.script_id: _summary(s.script_id, 100_000, 30_000 + 10_000 * i)
                 for i, s in enumerate(scripts)}
    by_url = {
        scripts[0].url: second,
        scripts[1].url: first,
        scripts[2].url: second,
    }
    provider = _make_provider(scripts, records, summaries, by_url=by_url)

    report = await aggregate_unused_js_report(provider, options=ReportOptions(max_concurrency=2))

    assert [i.url for i in report.items] == [s.url for s in scripts]
    assert [g.text for g in report.groups] == ["Second", "First", ""]
    assert report.groups[2].url == "#"
    assert report.items[3].entity is None


@pytest.mark.asyncio
async def test_same_name_entities_not_merged():
    scripts = [
        Script(script_id="1", url="https://a.test/x.js"),
        Script(script_id="2", url="https://b.test/x.js"),
    ]
    records = [NetworkRecord(url=s.url, transfer_size=100_000) for s in scripts]
    summaries = {s.script_id: _summary(s.script_id, 100_000, 40_000) for s in scripts}
    by_url = {scripts[0].url: KnownEntity(name="Shared"), scripts[1].url: KnownEntity(name="Shared")}
    report = await aggregate_unused_js_report(_make_provider(scripts, records, summaries, by_url=by_url))
    assert len(report.groups) == 2


@pytest.mark.asyncio
async def test_negative_threshold_is_not_clamped():
    provider = _single_script(transfer_size=100, total=100_000, wasted=10)
    # Scaled waste rounds to zero, still above a negative threshold.
    report = await aggregate_unused_js_report(provider, options={"unusedThreshold": -1})
    assert len(report.items) == 1
    assert report.items[0].wasted_bytes == 0


def test_build_headings():
    headings = build_headings()
    assert [h.key for h in headings] == ["url", "totalBytes", "wastedBytes"]
    assert [h.sub_items_heading.key for h in headings] == ["source", "sourceBytes", "sourceWastedBytes"]
    assert headings[0].value_type == "url"
    assert headings[0].sub_items_heading.value_type == "code"
    assert headings[1].value_type == "bytes"


@pytest.mark.asyncio
async def test_summary_failure_cancels_outstanding_requests():
    scripts = [
        Script(script_id="1", url="https://example.com/bad.js"),
        Script(script_id="2", url="https://example.com/slow.js"),
    ]
    records = [NetworkRecord(url=s.url, transfer_size=100_000) for s in scripts]
    provider = _make_provider(scripts, records, {})
    cancelled = []

    async def summary_side_effect(script_id, coverage, bundle):
        if script_id == "1":
            raise ArtifactError("malformed coverage")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(script_id)
            raise
        return _summary(script_id, 100_000, 50_000)

    provider.unused_js_summary.side_effect = summary_side_effect

    with pytest.raises(ArtifactError):
        await aggregate_unused_js_report(provider)
    # Let the cancelled task observe its cancellation.
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert cancelled == ["2"]
