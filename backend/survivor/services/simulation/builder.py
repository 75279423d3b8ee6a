"""Organism builder: point budget and contra-stat rules for stat edits.

All functions return new maps; callers own persistence.
"""

from typing import Any, Mapping

from survivor.errors import BudgetExceeded, InvalidSubmission, InvalidTraitEdit
from .traits import (
    INHERENT_VALUE, MAX_STAT, MIN_STAT, POINT_BUDGET,
    contra_for, inherent_for, stats_for,
)
from .types import Environment, Kingdom, Organism, OrganismStatus, Stats


def initialize_for_kingdom(kingdom: Kingdom) -> Stats:
    inherent = inherent_for(kingdom)
    return {s: (INHERENT_VALUE if s in inherent else 0) for s in stats_for(kingdom)}


def change_kingdom(organism: Organism, kingdom: Kingdom) -> Organism:
    """Switch kingdom; all previous allocations are dropped."""
    kingdom = Kingdom(kingdom)
    return Organism(
        name=organism.name,
        kingdom=kingdom,
        environment=organism.environment,
        stats=initialize_for_kingdom(kingdom),
        status=organism.status,
        player_name=organism.player_name,
        id=organism.id,
    )


def used_points(stats: Mapping[str, int], kingdom: Kingdom) -> int:
    inherent = inherent_for(kingdom)
    return sum(v for s, v in stats.items() if s not in inherent)


def remaining_points(stats: Mapping[str, int], kingdom: Kingdom) -> int:
    return POINT_BUDGET - used_points(stats, kingdom)


def _check_value(stat: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTraitEdit(f'{stat} must be a whole number')
    if not MIN_STAT <= value <= MAX_STAT:
        raise InvalidTraitEdit(f'{stat} must be between {MIN_STAT} and {MAX_STAT}')
    return value


def set_stat(stats: Mapping[str, int], kingdom: Kingdom, stat: str, new_value: int) -> Stats:
    """Assign ``stat`` and apply contra-stat suppression.

    Raising any of the errors leaves ``stats`` untouched. Suppression only
    happens when the stat goes up: every non-inherent contra stat loses
    twice the increase, floored at zero.
    """
    kingdom = Kingdom(kingdom)
    vocabulary = stats_for(kingdom)
    inherent = inherent_for(kingdom)
    if stat not in vocabulary:
        raise InvalidTraitEdit(f'{stat} is not a {kingdom.value} trait')
    if stat in inherent:
        raise InvalidTraitEdit(f'{stat} is an inherent {kingdom.value} trait and cannot be changed')
    new_value = _check_value(stat, new_value)

    delta = new_value - stats.get(stat, 0)
    if used_points(stats, kingdom) + delta > POINT_BUDGET:
        raise BudgetExceeded(f"You don't have enough points to raise {stat} to {new_value}")

    updated = dict(stats)
    updated[stat] = new_value
    gain = max(delta, 0)
    if gain:
        for contra in contra_for(stat):
            if contra not in vocabulary or contra in inherent:
                continue
            updated[contra] = max(0, updated.get(contra, 0) - 2 * gain)
    return updated


def normalize_stats(raw: Any, kingdom: Kingdom) -> Stats:
    """Check a client-supplied stats map and fill in what is missing.

    Missing stats default to 0 and inherent stats to their fixed value.
    Unknown stats, non-integer or out-of-range values, edited inherent
    stats and over-budget maps are rejected.
    """
    if not isinstance(raw, Mapping):
        raise InvalidSubmission('stats must be an object')
    kingdom = Kingdom(kingdom)
    vocabulary = stats_for(kingdom)
    inherent = inherent_for(kingdom)
    stats = initialize_for_kingdom(kingdom)
    for stat, value in raw.items():
        if stat not in vocabulary:
            raise InvalidTraitEdit(f'{stat} is not a {kingdom.value} trait')
        if stat in inherent:
            if value != INHERENT_VALUE:
                raise InvalidTraitEdit(f'{stat} is an inherent {kingdom.value} trait and cannot be changed')
            continue
        stats[stat] = _check_value(stat, value)
    if used_points(stats, kingdom) > POINT_BUDGET:
        raise BudgetExceeded(f'Allocated {used_points(stats, kingdom)} points, the budget is {POINT_BUDGET}')
    return stats


def set_organism_stat(organism: Organism, stat: str, new_value: int) -> Organism:
    return Organism(
        name=organism.name,
        kingdom=organism.kingdom,
        environment=organism.environment,
        stats=set_stat(organism.stats, organism.kingdom, stat, new_value),
        status=organism.status,
        player_name=organism.player_name,
        id=organism.id,
    )


def validate_submission(data: Mapping[str, Any], player_name: str = None) -> Organism:
    """Build a fresh ``alive`` organism from a player's submission.

    Missing stats default to 0 and inherent stats are always set to their
    fixed value; anything outside the kingdom's vocabulary is rejected.
    """
    name = (data.get('name') or '').strip()
    if not name:
        raise InvalidSubmission('Please give your organism a name')
    try:
        kingdom = Kingdom(data.get('kingdom'))
    except ValueError:
        raise InvalidSubmission(f"Unknown kingdom: {data.get('kingdom')!r}")
    try:
        environment = Environment(data.get('environment'))
    except ValueError:
        raise InvalidSubmission(f"Unknown environment: {data.get('environment')!r}")

    stats = normalize_stats(data.get('stats') or {}, kingdom)

    return Organism(
        name=name,
        kingdom=kingdom,
        environment=environment,
        stats=stats,
        status=OrganismStatus.ALIVE,
        player_name=player_name or data.get('player_name'),
    )
