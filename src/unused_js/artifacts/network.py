"""Network record matching and transfer-size estimation."""

from __future__ import annotations

from collections.abc import Iterable

from ..models import NetworkRecord, Script
from ..rounding import round_half_up


def get_request_for_script(
    network_records: Iterable[NetworkRecord], script: Script
) -> NetworkRecord | None:
    """Find the request that delivered ``script``, following redirects."""
    record = next((r for r in network_records if r.url == script.url), None)
    seen: set[int] = set()
    while record is not None and record.redirect_destination is not None:
        if id(record) in seen:
            break
        seen.add(id(record))
        record = record.redirect_destination
    return record


def estimate_transfer_size(
    network_record: NetworkRecord | None,
    total_bytes: int,
    resource_type: str,
    compression_ratio: float = 0.5,
) -> int:
    """Estimate the on-the-wire bytes for ``total_bytes`` of content."""
    if network_record is None:
        # Unknown transfer; assume roughly gzip-sized content.
        return round_half_up(total_bytes * compression_ratio)
    if network_record.resource_type == resource_type:
        return network_record.transfer_size or 0

    # Inlined in a different resource type: borrow that resource's compression ratio.
    transfer_size = network_record.transfer_size or 0
    resource_size = network_record.resource_size or 0
    ratio = transfer_size / resource_size if resource_size > 0 else 1
    return round_half_up(total_bytes * ratio)
