"""Arithmetic of the daily progress ledger.

Pure functions shared by the upsert and delete workflows: nothing here touches
a store, so every rule can be checked in isolation.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..common.validators import non_negative_number, non_negative_whole
from ..core.constants import METHODS
from ..core.enums import Method
from ..projects.model import ProgressProject
from .model import DailyProgressItem, MethodTally


def normalize_items(raw_items: Any) -> list[DailyProgressItem]:
    """Clean client-supplied items.

    Entries that are not objects or carry an unknown ``method`` are dropped;
    missing numbers count as 0 and negatives are clamped to 0.
    """

    if not isinstance(raw_items, list):
        return []

    out: list[DailyProgressItem] = []
    for it in raw_items:
        if not isinstance(it, Mapping):
            continue
        try:
            method = Method(it.get("method"))
        except ValueError:
            continue
        out.append(
            DailyProgressItem(
                method=method,
                points_done=non_negative_whole(it.get("points_done"), "points_done"),
                depth_reached=non_negative_number(it.get("depth_reached"), "depth_reached"),
            )
        )
    return out


def tally(items: Iterable[DailyProgressItem]) -> dict[Method, MethodTally]:
    points = {m: 0 for m in METHODS}
    depth = {m: 0.0 for m in METHODS}
    for it in items:
        points[it.method] += int(it.points_done)
        depth[it.method] = max(depth[it.method], float(it.depth_reached))
    return {m: MethodTally(points=points[m], depth_max=depth[m]) for m in METHODS}


def empty_tally() -> dict[Method, MethodTally]:
    return {m: MethodTally() for m in METHODS}


def point_increments(delta: Mapping[Method, MethodTally], prev: Mapping[Method, MethodTally]) -> dict[Method, int]:
    return {m: delta[m].points - prev[m].points for m in METHODS}


def max_depth_candidates(delta: Mapping[Method, MethodTally], project: ProgressProject) -> dict[Method, float]:
    # Monotonic: an upsert can raise the recorded max, never lower it.
    return {m: max(delta[m].depth_max, project.method_progress(m).max_depth) for m in METHODS}


def bounds_violations(
    project: ProgressProject,
    increments: Mapping[Method, int],
    *,
    check_upper: bool = True,
) -> list[Method]:
    """Methods whose completed points would leave ``[0, total_points]``.

    Deletions only ever lower the counters, so they pass ``check_upper=False``.
    """

    out = []
    for m in METHODS:
        current = project.method_progress(m)
        projected = current.completed_points + increments.get(m, 0)
        if projected < 0 or (check_upper and projected > current.total_points):
            out.append(m)
    return out


def methods_needing_recompute(removed: Mapping[Method, MethodTally], project: ProgressProject) -> list[Method]:
    """Methods whose recorded max depth may have been held by the removed items."""

    return [
        m
        for m in METHODS
        if removed[m].depth_max > 0 and removed[m].depth_max >= project.method_progress(m).max_depth
    ]
