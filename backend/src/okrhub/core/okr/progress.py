"""Progress computation for key results and objectives.

Per key result:

* ``percentage``: ``current / target * 100``, not clamped.
* ``boolean``: 100 when ``current == target``, otherwise 0.
* ``number``: ``min(current / target * 100, 100)``, capped above only.

Per objective: the mean of the per-key-result terms, then clamped to
[0, 100]. A percentage key result at 150% therefore reports 150 on its own
but lifts its objective only to 100.

The dashboard averages and buckets the per-key-result terms.

Any value that would come out non-finite (zero target, NaN input) is
reported as 0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from enum import Enum

from okrhub.core.okr.types import (
    DashboardStats,
    KeyResult,
    KeyResultStatus,
    KeyResultType,
    ObjectiveStatus,
    ObjectiveWithKeyResults,
)

ON_TRACK_THRESHOLD = 70.0
AT_RISK_THRESHOLD = 30.0


class ProgressBucket(str, Enum):
    """Dashboard health classification of an objective."""

    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BEHIND = "behind"


def finite_or_zero(value: float) -> float:
    """Coalesce NaN and infinities to 0."""
    return value if math.isfinite(value) else 0.0


def _ratio(current: float, target: float) -> float:
    if target == 0:
        return math.nan
    return current / target * 100


def key_result_progress(kr_type: KeyResultType, current_value: float, target_value: float) -> float:
    """Progress of a single key result.

    Args:
        kr_type: Key result type.
        current_value: Current measured value.
        target_value: Target value.

    Returns:
        Progress in percent. Percentage key results may exceed 100.
    """
    if kr_type == KeyResultType.BOOLEAN:
        return 100.0 if current_value == target_value else 0.0
    if kr_type == KeyResultType.NUMBER:
        return finite_or_zero(min(_ratio(current_value, target_value), 100.0))
    return finite_or_zero(_ratio(current_value, target_value))


def progress_of(key_result: KeyResult) -> float:
    """Progress of a key result entity."""
    return key_result_progress(key_result.type, key_result.current_value, key_result.target_value)


def objective_progress(key_results: Sequence[KeyResult]) -> float:
    """Aggregate progress of an objective's key results.

    Args:
        key_results: Child key results.

    Returns:
        Mean progress clamped to [0, 100]; 0 when there are none.
    """
    if not key_results:
        return 0.0
    mean = sum(progress_of(kr) for kr in key_results) / len(key_results)
    return finite_or_zero(max(0.0, min(mean, 100.0)))


def progress_bucket(progress: float) -> ProgressBucket:
    """Classify a key result's progress for the dashboard."""
    progress = finite_or_zero(progress)
    if progress >= ON_TRACK_THRESHOLD:
        return ProgressBucket.ON_TRACK
    if progress >= AT_RISK_THRESHOLD:
        return ProgressBucket.AT_RISK
    return ProgressBucket.BEHIND


def build_dashboard_stats(objectives: Iterable[ObjectiveWithKeyResults]) -> DashboardStats:
    """Aggregate dashboard counters over objectives with their key results.

    Average progress and the health buckets are taken over key results, not
    objectives: an objective with two key results weighs twice as much as
    one with a single key result, and objectives without key results add
    nothing to either.

    Args:
        objectives: Objectives in scope, each carrying its key results.

    Returns:
        DashboardStats with the average progress rounded to an integer.
    """
    stats = DashboardStats()
    progress_total = 0.0
    for objective in objectives:
        stats.total_objectives += 1
        if objective.status == ObjectiveStatus.ACTIVE:
            stats.active_objectives += 1
        elif objective.status == ObjectiveStatus.COMPLETED:
            stats.completed_objectives += 1

        for key_result in objective.key_results:
            stats.total_key_results += 1
            if key_result.status == KeyResultStatus.COMPLETED:
                stats.completed_key_results += 1

            progress = progress_of(key_result)
            progress_total += progress
            bucket = progress_bucket(progress)
            if bucket == ProgressBucket.ON_TRACK:
                stats.on_track += 1
            elif bucket == ProgressBucket.AT_RISK:
                stats.at_risk += 1
            else:
                stats.behind += 1

    if stats.total_key_results:
        stats.average_progress = round(progress_total / stats.total_key_results)
    return stats
