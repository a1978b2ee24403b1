"""
Bounded fetcher - one OpenSky request per call, filtered to a region.

The upstream bounding box is advisory only: OpenSky occasionally returns
aircraft just outside the requested area, so every record is re-checked
here before it becomes an Entity.

Failure policy: transport errors, non-2xx responses and malformed payloads
are logged and produce an empty Snapshot. Token exchange failures are NOT
handled here; they propagate to the fetch cycle.
"""

import logging
import time
from typing import Callable, Optional

import requests

from flightweather.ingestion.opensky_client import OpenSkyClient, StateVector
from flightweather.models import UNKNOWN_LABEL, BoundingBox, Entity, Snapshot

logger = logging.getLogger(__name__)


def to_entity(sv: StateVector, bounds: BoundingBox) -> Optional[Entity]:
    """
    Convert a state vector to an Entity, or None if it is not tracked.

    Dropped: records without a position, grounded aircraft, and anything
    outside `bounds` (edges inclusive).
    """
    if not sv.has_position():
        return None
    if sv.on_ground:
        return None
    if not bounds.contains(sv.latitude, sv.longitude):
        return None

    return Entity(
        id=sv.icao24,
        label=sv.callsign or UNKNOWN_LABEL,
        origin_region=sv.origin_country,
        latitude=sv.latitude,
        longitude=sv.longitude,
        altitude=sv.baro_altitude,
        ground_speed=sv.velocity,
        heading=sv.true_track,
        vertical_rate=sv.vertical_rate,
        grounded=sv.on_ground,
    )


class BoundedFetcher:
    """Produces one Snapshot per call from the OpenSky feed."""

    def __init__(
        self,
        client: Optional[OpenSkyClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client or OpenSkyClient.from_config()
        self._clock = clock

        self._failures = 0

    def fetch(self, bounds: BoundingBox) -> Snapshot:
        """
        Fetch airborne aircraft inside `bounds`.

        Returns an empty snapshot if the request fails for any reason other
        than authentication.
        """
        try:
            _, states = self.client.get_states(bbox=bounds)
        except requests.RequestException as e:
            self._failures += 1
            logger.error(f'Flight fetch failed: {e}')
            return Snapshot.empty(fetched_at=self._clock())
        except (ValueError, TypeError, KeyError) as e:
            self._failures += 1
            logger.error(f'Malformed flight payload: {e}')
            return Snapshot.empty(fetched_at=self._clock())

        entities = []
        for sv in states:
            entity = to_entity(sv, bounds)
            if entity:
                entities.append(entity)

        logger.debug(f'Kept {len(entities)} of {len(states)} state vectors inside bounds')

        return Snapshot.from_entities(entities, fetched_at=self._clock())

    @property
    def failure_count(self) -> int:
        return self._failures
