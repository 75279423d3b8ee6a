"""Roster summaries for the host and results screens."""

import random
from typing import Dict, Iterable, List, Optional

from .types import Environment, Organism, OrganismStatus


def winners(roster: Iterable[Organism]) -> List[Organism]:
    return [o for o in roster if o.status != OrganismStatus.EXTINCT]


def summarize_roster(roster: Iterable[Organism]) -> Dict[str, object]:
    roster = list(roster)
    by_status = {status.value: 0 for status in OrganismStatus}
    by_environment: Dict[str, List[str]] = {env.value: [] for env in Environment}
    for organism in roster:
        by_status[organism.status.value] += 1
        if organism.environment is not None:
            by_environment[organism.environment.value].append(organism.name)
    return {
        'total': len(roster),
        'surviving': sum(1 for o in roster if o.status != OrganismStatus.EXTINCT),
        'by_status': by_status,
        'by_environment': by_environment,
    }


def pick_ultimate_survivor(survivors: List[Organism], rng: Optional[random.Random] = None) -> Optional[Organism]:
    """City survivors take precedence over city adapters."""
    if not survivors:
        return None
    rng = rng or random
    top = [o for o in survivors if o.status == OrganismStatus.CITY_SURVIVOR]
    return rng.choice(top or survivors)
