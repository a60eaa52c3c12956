"""Per-script waste: transfer scaling and bundle sub-item ranking."""

from __future__ import annotations

from collections.abc import Callable

from .artifacts.network import estimate_transfer_size
from .config import UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD
from .models import Bundle, BundleSizes, NetworkRecord, SubItem, UnusedJsSummary, WasteItem
from .prefix import common_prefix, trim_common_prefix
from .rounding import round_half_up

UNMAPPED_SOURCE = "(unmapped)"
MAX_SUB_ITEMS = 5

TransferSizeEstimator = Callable[[NetworkRecord | None, int, str], int]


def rank_sub_items(
    sources_wasted_bytes: dict[str, int],
    sizes: BundleSizes,
    source_urls: list[str],
    transfer_ratio: float,
    threshold: float = UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD,
) -> list[SubItem]:
    """Top sources by wasted bytes, scaled to transfer size.

    ``sorted`` is stable, so sources with equal waste keep the order of
    ``sources_wasted_bytes``.
    """
    top = sorted(sources_wasted_bytes.items(), key=lambda kv: kv[1], reverse=True)[:MAX_SUB_ITEMS]

    ranked = []
    for source, unused in top:
        if source == UNMAPPED_SOURCE:
            total = sizes.unmapped_bytes
        else:
            total = sizes.files.get(source, 0)
        scaled_unused = round_half_up(unused * transfer_ratio)
        if scaled_unused <= threshold:
            continue
        ranked.append((source, round_half_up(total * transfer_ratio), scaled_unused))

    # Prefix comes from every source in the bundle, not just the retained ones.
    prefix = common_prefix(source_urls)
    return [
        SubItem(
            source=trim_common_prefix(source, prefix),
            source_bytes=total,
            source_wasted_bytes=unused,
        )
        for source, total, unused in ranked
    ]


def build_waste_item(
    url: str,
    summary: UnusedJsSummary,
    network_record: NetworkRecord | None,
    bundle: Bundle | None = None,
    entity_name: str | None = None,
    bundle_source_unused_threshold: float = UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD,
    estimator: TransferSizeEstimator = estimate_transfer_size,
) -> WasteItem:
    """Scale a script's summary to its transfer size.

    ``summary.total_bytes`` must be non-zero.
    """
    transfer = estimator(network_record, summary.total_bytes, "Script")
    transfer_ratio = transfer / summary.total_bytes

    sub_items = None
    # Failed bundle size computation means no sub-items, but the script still counts.
    if bundle is not None and isinstance(bundle.sizes, BundleSizes):
        if summary.sources_wasted_bytes is not None:
            sub_items = rank_sub_items(
                summary.sources_wasted_bytes,
                bundle.sizes,
                bundle.source_urls,
                transfer_ratio,
                threshold=bundle_source_unused_threshold,
            )

    return WasteItem(
        url=url,
        total_bytes=round_half_up(transfer_ratio * summary.total_bytes),
        wasted_bytes=round_half_up(transfer_ratio * summary.wasted_bytes),
        wasted_percent=summary.wasted_percent,
        entity=entity_name,
        sub_items=sub_items,
    )
