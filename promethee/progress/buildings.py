"""Building tier resolution — which stage of each town building is reached.

Tiers are derived on read from the stats counters; nothing about them is
stored. The content loader guarantees every progression starts at 0 and
rises strictly, so the progress fraction never divides by zero.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from promethee.content.schemas import BuildingDefinition, BuildingLevel
from promethee.progress.rules import BUILDING_METRICS
from promethee.schemas import UserStats


@dataclass(frozen=True)
class TierResolution:
    """Where a metric value sits in a building's progression.

    Attributes:
        current_tier: Highest tier whose exigence is met.
        next_tier: The following tier, or None when maxed out.
        progress_fraction: Share of the way from current to next, in [0, 1];
            1.0 when maxed out.
        remaining: Metric still needed for the next tier (0 when maxed out).
    """

    current_tier: BuildingLevel
    next_tier: BuildingLevel | None
    progress_fraction: float
    remaining: int


def resolve_tier(progression: Sequence[BuildingLevel], metric: int) -> TierResolution:
    """Resolves the current tier, next tier and progress for a metric.

    Args:
        progression: Tiers in ascending exigence order (validated at load).
        metric: The user's current value for the building's category.

    Returns:
        The TierResolution.
    """
    index = 0
    for candidate in range(len(progression) - 1, -1, -1):
        if metric >= progression[candidate].exigence:
            index = candidate
            break

    current = progression[index]
    following = progression[index + 1] if index + 1 < len(progression) else None

    if following is None:
        return TierResolution(current, None, 1.0, 0)

    span = following.exigence - current.exigence
    fraction = min(1.0, max(0.0, (metric - current.exigence) / span))
    return TierResolution(current, following, fraction, max(0, following.exigence - metric))


def metric_for(category: str, stats: UserStats) -> int:
    """Reads the stat counter backing a building category."""
    return getattr(stats, BUILDING_METRICS[category])


@dataclass(frozen=True)
class BuildingStatus:
    """A building together with the user's metric and resolved tier."""

    building: BuildingDefinition
    metric: int
    resolution: TierResolution


def resolve_town(
    buildings: Sequence[BuildingDefinition], stats: UserStats
) -> list[BuildingStatus]:
    """Resolves every building against the user's stats, in content order."""
    statuses = []
    for building in buildings:
        metric = metric_for(building.domaine, stats)
        statuses.append(
            BuildingStatus(
                building=building,
                metric=metric,
                resolution=resolve_tier(building.progression, metric),
            )
        )
    return statuses
