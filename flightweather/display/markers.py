"""
Marker layer - the render-side state that diff operations are applied to.

Holds one Marker per tracked aircraft, keyed by id. Only changed markers
are touched on each batch; colours and icons are recomputed for added and
updated entities only.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from flightweather.display.classifier import ColorBucket, classify
from flightweather.display.icons import IconCache, MarkerIcon
from flightweather.models import Entity, Snapshot
from flightweather.sync.differ import DiffOperation, Remove, apply_operations, operation_to_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Marker:
    """Render-ready view of one entity."""
    entity: Entity
    bucket: ColorBucket
    icon: MarkerIcon

    @property
    def color(self) -> str:
        return self.bucket.color

    @property
    def is_military(self) -> bool:
        return self.bucket is ColorBucket.MILITARY

    def to_dict(self) -> dict:
        data = self.entity.to_dict()
        data['bucket'] = self.bucket.value
        data['color'] = self.color
        data['icon'] = self.icon.key
        data['military'] = self.is_military
        return data


class MarkerLayer:
    """
    Thread-safe collection of markers.

    Also records the most recently applied batch so API clients can poll
    for incremental changes.
    """

    def __init__(
        self,
        icons: Optional[IconCache] = None,
        classifier: Callable[[Optional[str], Optional[str]], ColorBucket] = classify,
        clock: Callable[[], float] = time.time,
    ):
        self.icons = icons or IconCache()
        self.classifier = classifier
        self._clock = clock

        self._entities: Dict[str, Entity] = {}
        self._markers: Dict[str, Marker] = {}
        self._lock = threading.RLock()

        self._sequence = 0
        self._last_batch: List[DiffOperation] = []
        self._last_applied_at: float = 0
        self._rendered_at: float = 0

    def _build_marker(self, entity: Entity) -> Marker:
        bucket = self.classifier(entity.label, entity.origin_region)
        return Marker(
            entity=entity,
            bucket=bucket,
            icon=self.icons.get(entity.heading, bucket.color),
        )

    def apply(self, operations: Iterable[DiffOperation], fetched_at: float = 0) -> int:
        """
        Apply one batch. Returns the new batch sequence number.
        """
        operations = list(operations)
        with self._lock:
            # Build first so a failing batch leaves the layer untouched
            built = {
                op.entity_id: self._build_marker(op.entity)
                for op in operations
                if not isinstance(op, Remove)
            }
            apply_operations(self._entities, operations)
            for op in operations:
                if isinstance(op, Remove):
                    self._markers.pop(op.id, None)
                else:
                    self._markers[op.entity_id] = built[op.entity_id]

            self._sequence += 1
            self._last_batch = operations
            self._last_applied_at = self._clock()
            if fetched_at:
                self._rendered_at = fetched_at
            sequence = self._sequence

        logger.debug(f'Applied batch {sequence}: {len(operations)} operations')
        return sequence

    @property
    def snapshot(self) -> Snapshot:
        """Entities as currently rendered."""
        with self._lock:
            return Snapshot(entities=dict(self._entities), fetched_at=self._rendered_at)

    def get(self, entity_id: str) -> Optional[Marker]:
        with self._lock:
            return self._markers.get(entity_id.lower())

    def markers(self) -> List[Marker]:
        with self._lock:
            return list(self._markers.values())

    def search(self, term: Optional[str]) -> List[Marker]:
        """
        Case-insensitive callsign substring match.

        A blank term returns every marker.
        """
        markers = self.markers()
        term = (term or '').strip().upper()
        if not term:
            return markers
        return [m for m in markers if term in (m.entity.label or '').upper()]

    def last_batch(self) -> dict:
        with self._lock:
            return {
                'sequence': self._sequence,
                'applied_at': self._last_applied_at,
                'operations': [operation_to_dict(op) for op in self._last_batch],
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._markers)
