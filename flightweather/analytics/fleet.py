"""
Fleet statistics over the currently displayed aircraft.

Summaries are computed with NumPy over whatever values are present; an
aircraft missing a reading is simply left out of that metric.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional

import numpy as np

from flightweather.display.markers import Marker

logger = logging.getLogger(__name__)

# m/s, ~500 fpm
VERTICAL_RATE_THRESHOLD = 2.5


def _summary(values: List[Optional[float]]) -> Optional[dict]:
    """mean/median/min/max of the non-None values, or None if there are none."""
    arr = np.array([v for v in values if v is not None], dtype=float)
    if arr.size == 0:
        return None
    return {
        'mean': round(float(np.mean(arr)), 1),
        'median': round(float(np.median(arr)), 1),
        'min': round(float(np.min(arr)), 1),
        'max': round(float(np.max(arr)), 1),
        'count': int(arr.size),
    }


def fleet_statistics(markers: Iterable[Marker]) -> dict:
    """Aggregate counts and telemetry distributions for the fleet."""
    markers = list(markers)
    entities = [m.entity for m in markers]

    rates = np.array(
        [e.vertical_rate for e in entities if e.vertical_rate is not None],
        dtype=float,
    )
    climbing = int(np.sum(rates > VERTICAL_RATE_THRESHOLD))
    descending = int(np.sum(rates < -VERTICAL_RATE_THRESHOLD))

    return {
        'count': len(entities),
        'altitude_ft': _summary([e.altitude_ft for e in entities]),
        'speed_kts': _summary([e.speed_kts for e in entities]),
        'by_bucket': dict(Counter(m.bucket.value for m in markers)),
        'vertical': {
            'climbing': climbing,
            'descending': descending,
            'level': int(rates.size) - climbing - descending,
        },
    }
