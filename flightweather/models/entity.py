"""
Entity and Snapshot - the tracked-aircraft data model.

An Entity is one airborne aircraft as seen in a single fetch cycle. A
Snapshot is the full set of entities produced by one cycle, keyed by the
stable OpenSky icao24 address.

Design notes:
- Entities are immutable; a new fetch produces new objects
- Units mirror the OpenSky feed (metres, m/s, degrees); display
  conversions live on the entity as properties
- Only the latest snapshot is ever retained
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Callsign sentinel for aircraft that do not report one
UNKNOWN_LABEL = 'N/A'


def meters_to_feet(meters: Optional[float]) -> Optional[int]:
    if meters is None:
        return None
    return round(meters * 3.28084)


def ms_to_knots(ms: Optional[float]) -> Optional[int]:
    if ms is None:
        return None
    return round(ms * 1.94384)


@dataclass(frozen=True)
class BoundingBox:
    """
    Geographic bounding box, edges inclusive.

    OpenSky expects: lamin, lomin, lamax, lomax
    (latitude min, longitude min, latitude max, longitude max)
    """
    north: float
    south: float
    east: float
    west: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.south <= latitude <= self.north
            and self.west <= longitude <= self.east
        )

    def to_params(self) -> dict:
        """Convert to OpenSky API query parameters."""
        return {
            'lamin': self.south,
            'lomin': self.west,
            'lamax': self.north,
            'lomax': self.east,
        }


@dataclass(frozen=True)
class Entity:
    """
    A tracked aircraft.

    `id` is the lowercased ICAO24 address and is unique within a snapshot.
    `label` is the trimmed callsign or UNKNOWN_LABEL.
    """
    id: str
    label: str
    origin_region: Optional[str]
    latitude: float
    longitude: float
    altitude: Optional[float] = None       # metres (barometric)
    ground_speed: Optional[float] = None   # m/s
    heading: Optional[float] = None        # degrees, 0=north
    vertical_rate: Optional[float] = None  # m/s
    grounded: bool = False

    @property
    def position(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    @property
    def altitude_ft(self) -> Optional[int]:
        return meters_to_feet(self.altitude)

    @property
    def speed_kts(self) -> Optional[int]:
        return ms_to_knots(self.ground_speed)

    @property
    def heading_display(self) -> Optional[int]:
        """Heading rounded to whole degrees."""
        if self.heading is None:
            return None
        return round(self.heading) % 360

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        data = asdict(self)
        data['telemetry'] = {
            'altitude_ft': self.altitude_ft,
            'speed_kts': self.speed_kts,
            'heading': self.heading_display,
        }
        return data


@dataclass
class Snapshot:
    """
    All entities produced by one fetch cycle.

    Order is irrelevant; lookups are by id. `fetched_at` is the epoch time
    at which the fetch completed.
    """
    entities: Dict[str, Entity] = field(default_factory=dict)
    fetched_at: float = 0.0

    @classmethod
    def empty(cls, fetched_at: float = 0.0) -> 'Snapshot':
        return cls(entities={}, fetched_at=fetched_at)

    @classmethod
    def from_entities(
        cls,
        entities: Iterable[Entity],
        fetched_at: float = 0.0,
    ) -> 'Snapshot':
        """Build a snapshot; a repeated id replaces the earlier record."""
        by_id: Dict[str, Entity] = {}
        for entity in entities:
            if entity.id in by_id:
                logger.debug(f'Duplicate id {entity.id} in snapshot, keeping latest')
            by_id[entity.id] = entity
        return cls(entities=by_id, fetched_at=fetched_at)

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.entities.values())

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.entities

    def get(self, entity_id: str) -> Optional[Entity]:
        return self.entities.get(entity_id)

    @property
    def ids(self) -> List[str]:
        return list(self.entities)
