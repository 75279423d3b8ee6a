"""Trait catalog: per-kingdom stat vocabulary, inherent traits and
contra-stat trade-offs.

Everything here is static data. Lookups for a kingdom that is not in the
tables raise straight away; that is a programming error, not a player
error.
"""

from typing import Dict, FrozenSet, Tuple

from .types import Kingdom

POINT_BUDGET = 11
MIN_STAT = 0
MAX_STAT = 5
INHERENT_VALUE = MAX_STAT

# Stats shared by every non-animal kingdom
_COMMON = ('fertility', 'magnetism', 'heatResistance', 'coldResistance',
           'opportunism', 'altruism', 'sociability')

KINGDOM_STATS: Dict[Kingdom, Tuple[str, ...]] = {
    Kingdom.ANIMAL: (
        'mobility', 'agility', 'strength', 'intelligence', 'resilience', 'temerity',
        'resourcefulness', 'magnetism', 'auralAbility', 'vision', 'fertility',
        'sexAppeal', 'heatResistance', 'coldResistance', 'opportunism',
        'altruism', 'sociability', 'stealth', 'nocturnal',
    ),
    Kingdom.PLANT: ('photosynthesis', 'resilience', 'temerity') + _COMMON + (
        'height', 'rootDepth', 'waterStorage',
    ),
    Kingdom.FUNGI: ('decomposer', 'resilience', 'temerity') + _COMMON + (
        'parasitic', 'sporeDispersal',
    ),
    Kingdom.PROTIST: ('motility', 'resilience', 'audacity') + _COMMON + (
        'photosynthesis',
    ),
    Kingdom.BACTERIA: ('mutation', 'horizontalGeneTransfer', 'temerity') + _COMMON + (
        'antibioticResistance',
    ),
    Kingdom.ARCHAEA: ('extremophile', 'temerity') + _COMMON + (
        'thermophile', 'psychrophile', 'halophile',
    ),
}

INHERENT_STATS: Dict[Kingdom, FrozenSet[str]] = {
    Kingdom.ANIMAL: frozenset({'mobility'}),
    Kingdom.PLANT: frozenset({'photosynthesis'}),
    Kingdom.FUNGI: frozenset({'decomposer'}),
    Kingdom.PROTIST: frozenset({'motility'}),
    Kingdom.BACTERIA: frozenset({'mutation', 'horizontalGeneTransfer'}),
    Kingdom.ARCHAEA: frozenset({'extremophile'}),
}

# stat -> stats it suppresses when increased
CONTRA_STATS: Dict[str, Tuple[str, ...]] = {
    'agility': ('strength',),
    'strength': ('agility', 'stealth'),
    'intelligence': ('strength',),
    'resilience': ('temerity', 'audacity'),
    'temerity': ('resilience',),
    'audacity': ('resilience',),
    'resourcefulness': ('strength', 'temerity'),
    'magnetism': ('stealth',),
    'auralAbility': ('intelligence',),
    'vision': ('intelligence',),
    'fertility': ('resourcefulness', 'resilience', 'agility'),
    'sexAppeal': ('stealth',),
    'heatResistance': ('coldResistance',),
    'coldResistance': ('heatResistance',),
    'opportunism': ('altruism', 'sociability'),
    'altruism': ('magnetism', 'opportunism'),
    'sociability': ('temerity', 'strength'),
    'stealth': ('magnetism', 'sexAppeal'),
    'nocturnal': ('vision', 'sociability'),
    'height': ('rootDepth',),
    'rootDepth': ('height',),
    'waterStorage': ('photosynthesis', 'fertility'),
    'photosynthesis': ('opportunism',),
    'parasitic': ('altruism',),
    'sporeDispersal': ('resilience',),
    'antibioticResistance': ('fertility', 'mutation'),
    'thermophile': ('psychrophile',),
    'psychrophile': ('thermophile',),
    'halophile': ('fertility',),
}


def stats_for(kingdom: Kingdom) -> Tuple[str, ...]:
    return KINGDOM_STATS[Kingdom(kingdom)]


def inherent_for(kingdom: Kingdom) -> FrozenSet[str]:
    return INHERENT_STATS[Kingdom(kingdom)]


def is_inherent(kingdom: Kingdom, stat: str) -> bool:
    return stat in inherent_for(kingdom)


def acquired_for(kingdom: Kingdom) -> Tuple[str, ...]:
    inherent = inherent_for(kingdom)
    return tuple(s for s in stats_for(kingdom) if s not in inherent)


def contra_for(stat: str) -> Tuple[str, ...]:
    return CONTRA_STATS.get(stat, ())


def catalog_dict(kingdom: Kingdom) -> dict:
    """Serializable view of one kingdom's vocabulary."""
    kingdom = Kingdom(kingdom)
    return {
        'kingdom': kingdom.value,
        'stats': list(stats_for(kingdom)),
        'inherent': [s for s in stats_for(kingdom) if is_inherent(kingdom, s)],
        'contra': {s: [c for c in contra_for(s) if c in stats_for(kingdom)] for s in stats_for(kingdom)},
        'point_budget': POINT_BUDGET,
        'max_stat': MAX_STAT,
    }
