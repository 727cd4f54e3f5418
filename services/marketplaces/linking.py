"""
Identifier reconciliation.

Matches local variant SKUs against records fetched from a channel and keeps
the per-product linkage inside an account's ``marketplace_identifiers``.
Everything here is pure; nothing performs I/O or writes to a store.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from services.marketplaces.base import SyncResult

PRODUCTS_KEY = "products"


@dataclass(frozen=True, slots=True)
class LinkOutcome:
    """
    Result of matching local SKUs to remote identifiers.

    Attributes:
        linked: Local SKU to remote id, in local SKU order.
        unmatched: Local SKUs with no remote counterpart.
        total: Number of distinct local SKUs considered.
    """

    linked: dict[str, str]
    unmatched: tuple[str, ...]
    total: int

    @property
    def matched(self) -> int:
        """Return the number of linked SKUs."""
        return len(self.linked)

    @property
    def coverage_percent(self) -> int:
        """Return the share of local SKUs that were linked, 0-100."""
        return coverage_percent(self.matched, self.total)

    @property
    def is_complete(self) -> bool:
        """Check if every local SKU was linked."""
        return self.total > 0 and not self.unmatched


def coverage_percent(matched: int, total: int) -> int:
    """
    Compute linkage coverage, rounding halves up.

    Args:
        matched: Linked SKU count.
        total: Local SKU count.

    Returns:
        Integer percentage; 0 when there are no local SKUs.
    """
    if total <= 0:
        return 0
    ratio = Decimal(matched) / Decimal(total) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def reconcile(
    local_skus: Iterable[str],
    remote_records: Iterable[Mapping[str, Any]],
    *,
    sku_field: str,
    id_field: str,
    fallback_id_fields: tuple[str, ...] = (),
) -> LinkOutcome:
    """
    Link local SKUs to remote ids.

    Remote records without a SKU or an id are skipped. When several records
    share a SKU the first one wins.

    Args:
        local_skus: SKUs of the local product's variants.
        remote_records: Records fetched from the channel.
        sku_field: Record key holding the seller SKU.
        id_field: Record key holding the remote id.
        fallback_id_fields: Keys tried in order when ``id_field`` is empty.

    Returns:
        LinkOutcome with the mapping and the unmatched SKUs.
    """
    remote: dict[str, str] = {}
    for record in remote_records:
        sku = record.get(sku_field)
        remote_id = record.get(id_field)
        for fallback in fallback_id_fields:
            if remote_id:
                break
            remote_id = record.get(fallback)
        if sku and remote_id and str(sku) not in remote:
            remote[str(sku)] = str(remote_id)

    wanted = list(dict.fromkeys(sku for sku in local_skus if sku))
    linked = {sku: remote[sku] for sku in wanted if sku in remote}
    unmatched = tuple(sku for sku in wanted if sku not in remote)
    return LinkOutcome(linked=linked, unmatched=unmatched, total=len(wanted))


def product_linkage(identifiers: Mapping[str, Any], product_id: int) -> dict[str, Any] | None:
    """Return the stored linkage of a product, if any."""
    products = identifiers.get(PRODUCTS_KEY) or {}
    linkage = products.get(str(product_id))
    return dict(linkage) if linkage else None


def with_product_linkage(
    identifiers: Mapping[str, Any],
    product_id: int,
    remote_id: str,
    variants: Mapping[str, str],
) -> dict[str, Any]:
    """
    Return a new identifiers map with the product's linkage replaced.

    The input map is not modified.
    """
    updated = copy.deepcopy(dict(identifiers))
    products = dict(updated.get(PRODUCTS_KEY) or {})
    products[str(product_id)] = {
        "remote_id": remote_id,
        "variants": dict(variants),
        "synced_at": datetime.now(UTC).isoformat(),
    }
    updated[PRODUCTS_KEY] = products
    return updated


def merge_product_linkage(
    current: Mapping[str, Any],
    returned: Mapping[str, Any],
    product_id: int,
) -> dict[str, Any]:
    """
    Carry one product's linkage from ``returned`` into ``current``.

    Other products and account-level keys keep their values from
    ``current``. A product missing from ``returned`` is unlinked.
    """
    merged = copy.deepcopy(dict(current))
    products = dict(merged.get(PRODUCTS_KEY) or {})
    linkage = (returned.get(PRODUCTS_KEY) or {}).get(str(product_id))
    if linkage:
        products[str(product_id)] = copy.deepcopy(dict(linkage))
    else:
        products.pop(str(product_id), None)
    merged[PRODUCTS_KEY] = products
    return merged


def link_result(
    outcome: LinkOutcome,
    *,
    product_id: int,
    remote_id: str | None,
    identifiers: Mapping[str, Any],
    channel: str,
) -> SyncResult:
    """
    Turn a LinkOutcome into the operation's result.

    At least one match is a success, even with partial coverage. The
    updated identifiers map is returned for the caller to persist.
    """
    data: dict[str, Any] = {
        "product_id": product_id,
        "linked_offers": dict(outcome.linked),
        "coverage_percent": outcome.coverage_percent,
        "unmatched_skus": list(outcome.unmatched),
        "variants": outcome.total,
    }
    metadata = {"channel": channel, "operation": "link"}
    if outcome.matched == 0:
        return SyncResult.failed(
            f"No remote offers matched the {outcome.total} local SKU(s)",
            errors=[f"Unmatched SKU: {sku}" for sku in outcome.unmatched] or None,
            data=data,
            metadata={**metadata, "error_code": "not_found", "retryable": False},
        )

    data["remote_id"] = remote_id or next(iter(outcome.linked.values()))
    data["marketplace_identifiers"] = with_product_linkage(
        identifiers, product_id, data["remote_id"], outcome.linked
    )
    return SyncResult.succeeded(
        f"Linked {outcome.matched}/{outcome.total} SKU(s) ({outcome.coverage_percent}% coverage)",
        data=data,
        metadata=metadata,
    )
