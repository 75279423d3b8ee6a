"""Threshold bands that turn a compatibility score into a status."""

from typing import Sequence, Tuple

from .types import OrganismStatus

Thresholds = Sequence[Tuple[float, OrganismStatus]]

# (minimum score, status), checked top-down
ENVIRONMENT_THRESHOLDS: Thresholds = (
    (8, OrganismStatus.THRIVING),
    (5, OrganismStatus.SURVIVING),
    (3, OrganismStatus.STRUGGLING),
)

CITY_THRESHOLDS: Thresholds = (
    (5, OrganismStatus.CITY_SURVIVOR),
    (3, OrganismStatus.CITY_ADAPTER),
)


def classify(score: float, thresholds: Thresholds) -> OrganismStatus:
    for minimum, status in thresholds:
        if score >= minimum:
            return status
    return OrganismStatus.EXTINCT


def classify_organism(current: OrganismStatus, score: float, thresholds: Thresholds) -> OrganismStatus:
    # extinction is absorbing until a reset
    if current == OrganismStatus.EXTINCT:
        return current
    return classify(score, thresholds)
