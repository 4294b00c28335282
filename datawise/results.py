"""Per-resource provisioning outcomes."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of creating (or confirming) a single resource."""

    resource: str
    ok: bool
    message: str = ""


def count_succeeded(results: Iterable[ProvisionResult]) -> int:
    return sum(1 for r in results if r.ok)
