"""
Display module - what the map needs to draw each aircraft.

Colour classification, heading-rounded icon memoization, and the marker
layer that diff batches are applied to.
"""

from flightweather.display.classifier import ColorBucket, classify
from flightweather.display.icons import IconCache, MarkerIcon, round_heading
from flightweather.display.markers import Marker, MarkerLayer

__all__ = [
    'ColorBucket',
    'classify',
    'IconCache',
    'MarkerIcon',
    'round_heading',
    'Marker',
    'MarkerLayer',
]
