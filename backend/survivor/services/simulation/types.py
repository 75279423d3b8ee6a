"""Domain value types shared by the simulation services."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Kingdom(str, Enum):
    ANIMAL = 'Animal'
    PLANT = 'Plant'
    FUNGI = 'Fungi'
    PROTIST = 'Protist'
    BACTERIA = 'Bacteria'
    ARCHAEA = 'Archaea'


class Environment(str, Enum):
    GRASSLAND = 'Grassland'
    DESERT = 'Desert'
    TUNDRA = 'Tundra'
    JUNGLE = 'Jungle'


class OrganismStatus(str, Enum):
    ALIVE = 'alive'
    THRIVING = 'thriving'
    SURVIVING = 'surviving'
    STRUGGLING = 'struggling'
    EXTINCT = 'extinct'
    CITY_SURVIVOR = 'city_survivor'
    CITY_ADAPTER = 'city_adapter'


class GameState(str, Enum):
    WAITING = 'waiting'
    ENVIRONMENT = 'environment'
    CITY = 'city'
    RESULTS = 'results'


def _parse(enum_cls, value):
    """Coerce a raw value into ``enum_cls``; ``None`` if it does not fit."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


Stats = Dict[str, int]


@dataclass(frozen=True)
class Organism:
    """A submitted organism.

    ``kingdom`` and ``environment`` are optional only so that partially
    written store rows can be represented; such rows never reach scoring
    (see :meth:`is_well_formed`).
    """

    name: str
    kingdom: Optional[Kingdom]
    environment: Optional[Environment]
    stats: Stats = field(default_factory=dict)
    status: OrganismStatus = OrganismStatus.ALIVE
    player_name: Optional[str] = None
    id: Optional[str] = None

    def is_well_formed(self) -> bool:
        return bool(self.name) and self.kingdom is not None and self.environment is not None

    def with_status(self, status: OrganismStatus) -> 'Organism':
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'kingdom': self.kingdom.value if self.kingdom else None,
            'environment': self.environment.value if self.environment else None,
            'stats': dict(self.stats),
            'status': self.status.value,
            'player_name': self.player_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Organism':
        stats = {}
        for key, value in (data.get('stats') or {}).items():
            try:
                stats[str(key)] = int(value)
            except (TypeError, ValueError):
                continue
        ident = data.get('id')
        return cls(
            name=(data.get('name') or '').strip(),
            kingdom=_parse(Kingdom, data.get('kingdom')),
            environment=_parse(Environment, data.get('environment')),
            stats=stats,
            status=_parse(OrganismStatus, data.get('status')) or OrganismStatus.ALIVE,
            player_name=data.get('player_name'),
            id=str(ident) if ident is not None else None,
        )
