"""Compatibility scoring.

Two pure scores:

- environment compatibility: how well an organism fits its chosen biome
- city compatibility: how well it copes with the city challenge

Both are a weighted sum over the organism's stats plus an inherent trait
bonus plus a kingdom bonus. The numbers below are tuning data; the shape
of the formulas is what the rest of the game relies on. Scores are not
clamped and may be negative.
"""

from typing import Dict, Mapping, Optional

from .traits import INHERENT_VALUE, inherent_for, stats_for
from .types import Environment, Kingdom, Organism

ENVIRONMENT_WEIGHTS: Dict[Environment, Dict[str, float]] = {
    Environment.GRASSLAND: {
        'agility': 0.8,
        'resilience': 0.6,
        'heatResistance': 0.4,
        'sociability': 0.5,
        'temerity': -0.3,
        'mobility': 0.3,
        'vision': 0.3,
        'stealth': 0.2,
        'fertility': 0.3,
        'photosynthesis': 0.3,
        'rootDepth': 0.5,
        'height': 0.2,
        'sporeDispersal': 0.4,
        'motility': 0.1,
    },
    Environment.DESERT: {
        'heatResistance': 1.0,
        'resilience': 0.8,
        'opportunism': 0.6,
        'coldResistance': -0.8,
        'temerity': 0.4,
        'audacity': 0.4,
        'nocturnal': 0.6,
        'fertility': -0.2,
        'mobility': 0.1,
        'photosynthesis': 0.2,
        'waterStorage': 1.0,
        'rootDepth': 0.6,
        'thermophile': 0.8,
        'halophile': 0.5,
        'extremophile': 0.3,
    },
    Environment.TUNDRA: {
        'coldResistance': 1.0,
        'resilience': 0.8,
        'sociability': 0.6,
        'heatResistance': -0.8,
        'fertility': -0.2,
        'mobility': 0.1,
        'photosynthesis': 0.1,
        'height': -0.4,
        'psychrophile': 1.0,
        'extremophile': 0.3,
    },
    Environment.JUNGLE: {
        'agility': 0.8,
        'vision': 0.7,
        'intelligence': 0.5,
        'heatResistance': 0.4,
        'fertility': 0.6,
        'coldResistance': -0.3,
        'stealth': 0.5,
        'audacity': 0.2,
        'photosynthesis': 0.3,
        'height': 0.6,
        'decomposer': 0.3,
        'parasitic': 0.5,
        'sporeDispersal': 0.3,
        'motility': 0.3,
    },
}

ENVIRONMENT_INHERENT_BONUS = 1.0

# Later revision: extremophiles only get help where it matters.
TARGETED_KINGDOM_BONUS: Dict[Kingdom, Dict[Environment, float]] = {
    Kingdom.ANIMAL: {Environment.GRASSLAND: 1.0},
    Kingdom.PLANT: {Environment.GRASSLAND: 1.0, Environment.JUNGLE: 1.0},
    Kingdom.FUNGI: {Environment.JUNGLE: 1.0},
    Kingdom.PROTIST: {Environment.JUNGLE: 0.5},
    Kingdom.BACTERIA: {env: 0.5 for env in Environment},
    Kingdom.ARCHAEA: {Environment.DESERT: 1.0, Environment.TUNDRA: 0.8},
}

# Earlier revision: bacteria and archaea are adaptable everywhere.
FLAT_KINGDOM_BONUS: Dict[Kingdom, Dict[Environment, float]] = {
    Kingdom.ANIMAL: {Environment.GRASSLAND: 1.0},
    Kingdom.PLANT: {Environment.GRASSLAND: 1.0, Environment.JUNGLE: 1.0},
    Kingdom.FUNGI: {Environment.JUNGLE: 1.0},
    Kingdom.PROTIST: {Environment.JUNGLE: 0.5},
    Kingdom.BACTERIA: {env: 0.5 for env in Environment},
    Kingdom.ARCHAEA: {env: 0.5 for env in Environment},
}

KINGDOM_BONUS_TABLES = {
    'targeted': TARGETED_KINGDOM_BONUS,
    'flat': FLAT_KINGDOM_BONUS,
}
DEFAULT_BONUS_TABLE = 'targeted'

CITY_WEIGHTS: Dict[str, float] = {
    'intelligence': 0.8,
    'resourcefulness': 0.9,
    'resilience': 0.7,
    'opportunism': 0.6,
    'sociability': 0.5,
    'fertility': 0.4,
    'nocturnal': 0.7,
    'audacity': 0.5,
    'temerity': 0.3,
    'agility': 0.3,
    'stealth': 0.4,
    'mobility': 0.2,
    'motility': 0.2,
    'height': -0.4,
    'decomposer': 0.6,
    'parasitic': 0.4,
    'mutation': 0.5,
    'horizontalGeneTransfer': 0.4,
    'antibioticResistance': 0.8,
    'extremophile': 0.3,
    'thermophile': 0.2,
    'psychrophile': 0.1,
    'halophile': 0.3,
}

# Inherent traits that make a lineage unusually quick to adapt
CITY_ADAPTIVE_INHERENT = frozenset({'mutation', 'horizontalGeneTransfer'})
CITY_ADAPTIVE_INHERENT_BONUS = 1.5
CITY_INHERENT_BONUS = 0.5

CITY_KINGDOM_BONUS: Dict[Kingdom, float] = {
    Kingdom.BACTERIA: 2.0,
    Kingdom.ARCHAEA: 1.5,
    Kingdom.FUNGI: 1.0,
    Kingdom.ANIMAL: 0.5,
    Kingdom.PLANT: -1.0,
    Kingdom.PROTIST: -0.5,
}


def resolve_bonus_table(table=None) -> Mapping[Kingdom, Mapping[Environment, float]]:
    """Accept a table name, a table, or ``None`` for the default."""
    if table is None:
        return KINGDOM_BONUS_TABLES[DEFAULT_BONUS_TABLE]
    if isinstance(table, str):
        return KINGDOM_BONUS_TABLES[table]
    return table


def _weighted_sum(organism: Organism, weights: Mapping[str, float]) -> float:
    # inherent stats are fixed, whatever the stored map says
    stats = dict(organism.stats)
    stats.update({stat: INHERENT_VALUE for stat in inherent_for(organism.kingdom)})
    return sum(stats.get(stat, 0) * weights.get(stat, 0.0) for stat in stats_for(organism.kingdom))


def _has_usable_stats(organism: Organism) -> bool:
    return organism.kingdom is not None and bool(organism.stats)


def environment_compatibility(organism: Organism, environment: Environment,
                              bonus_table: Optional[object] = None) -> float:
    if not _has_usable_stats(organism):
        return 0.0
    environment = Environment(environment)
    score = _weighted_sum(organism, ENVIRONMENT_WEIGHTS[environment])
    score += ENVIRONMENT_INHERENT_BONUS * len(inherent_for(organism.kingdom))
    score += resolve_bonus_table(bonus_table).get(organism.kingdom, {}).get(environment, 0.0)
    return score


def city_compatibility(organism: Organism) -> float:
    if not _has_usable_stats(organism):
        return 0.0
    score = _weighted_sum(organism, CITY_WEIGHTS)
    for stat in inherent_for(organism.kingdom):
        if stat in CITY_ADAPTIVE_INHERENT:
            score += CITY_ADAPTIVE_INHERENT_BONUS
        else:
            score += CITY_INHERENT_BONUS
    score += CITY_KINGDOM_BONUS.get(organism.kingdom, 0.0)
    return score
