"""
Completion Service - Scan completion for delivery manifests.

Pure functions comparing a report's package manifest against the set of
scanned package IDs. Nothing here is cached: callers re-evaluate on every
read so the result can never lag behind either input.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence

from src.utils.constants import ROW_STATUS_COMPLETE, ROW_STATUS_NOT_STARTED


@dataclass(frozen=True)
class PackageRow:
    """One manifest line as shown on the delivery check screen."""

    package_id: str
    product_name: str
    scanned: bool

    @property
    def status_label(self) -> str:
        return ROW_STATUS_COMPLETE if self.scanned else ROW_STATUS_NOT_STARTED


def _package_id(package: Any) -> str:
    """Package ID from a package dict or a Package-like object."""
    if isinstance(package, Mapping):
        return package["package_id"]
    return package.package_id


def is_complete(manifest: Sequence[Any], scanned: Iterable[str]) -> bool:
    """
    Check whether every package on the manifest has been scanned.

    An empty manifest is complete: there is nothing left to scan.

    Args:
        manifest: Package dicts (or objects with package_id)
        scanned: Scanned package IDs

    Returns:
        True if every manifest package ID is in scanned
    """
    scanned_ids = set(scanned)
    return all(_package_id(package) in scanned_ids for package in manifest)


def count_scanned(manifest: Sequence[Any], scanned: Iterable[str]) -> int:
    """Number of manifest packages that have been scanned."""
    scanned_ids = set(scanned)
    return sum(1 for package in manifest if _package_id(package) in scanned_ids)


def build_package_rows(manifest: Sequence[Any], scanned: Iterable[str]) -> List[PackageRow]:
    """
    Build display rows for a manifest, in manifest order.

    Args:
        manifest: Package dicts (or objects with package_id/product_name)
        scanned: Scanned package IDs

    Returns:
        List of PackageRow
    """
    scanned_ids = set(scanned)
    rows = []
    for package in manifest:
        package_id = _package_id(package)
        if isinstance(package, Mapping):
            product_name = package.get("product_name") or ""
        else:
            product_name = getattr(package, "product_name", "") or ""
        rows.append(
            PackageRow(
                package_id=package_id,
                product_name=product_name,
                scanned=package_id in scanned_ids,
            )
        )
    return rows
