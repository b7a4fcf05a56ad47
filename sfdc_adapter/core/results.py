"""
sfdc_adapter.core.results - Batch mutation result handling
==========================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Type, TypeVar

from sfdc_adapter.core.errors import ResultError


R = TypeVar("R")


def item_succeeded(result: Any) -> bool:
    """Read the success flag of a per-item result (object or mapping)."""
    if isinstance(result, Mapping):
        return bool(result.get("success"))
    return bool(getattr(result, "success", False))


def aggregate_results(
    results: Sequence[R],
    message: str,
    error_cls: Type[ResultError],
) -> Sequence[R]:
    """
    Pass an all-success batch result through, or raise one error for it.

    Parameters
    ----------
    results : sequence
        Per-item results, in request order
    message : str
        Error message used if any item failed
    error_cls : type
        ResultError subclass to raise

    Returns
    -------
    sequence
        `results`, unchanged

    Raises
    ------
    ResultError
        `error_cls` carrying every item result (not only the failures)
    """
    if all(item_succeeded(r) for r in results):
        return results
    raise error_cls(message, results)
