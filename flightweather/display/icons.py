"""
Marker icon memoization.

Each icon is a small SVG plane rotated to the aircraft heading. Headings
are rounded to a fixed step so a few hundred aircraft share a handful of
icons. The cache stops accepting new entries at its cap rather than
evicting; past the cap icons are still built, just not stored.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from flightweather.config import config

logger = logging.getLogger(__name__)

_PLANE_SVG = (
    '<svg width="32" height="32" viewBox="0 0 32 32" xmlns="http://www.w3.org/2000/svg">'
    '<g transform="rotate({heading} 16 16)">'
    '<path d="M16 2 L18 14 L24 14 L24 18 L18 18 L16 30 L14 30 L12 18 L6 18 L6 14 L12 14 L14 2 Z" '
    'fill="{color}" stroke="#1e40af" stroke-width="1"/>'
    '</g></svg>'
)


def round_heading(heading: Optional[float], step: int = 15) -> int:
    """Round to the nearest `step` degrees, halves upward. Unknown headings point north."""
    if heading is None or not math.isfinite(heading):
        heading = 0.0
    return int(math.floor(heading / step + 0.5) * step)


@dataclass(frozen=True)
class MarkerIcon:
    key: str
    svg: str
    size: Tuple[int, int] = (32, 32)
    anchor: Tuple[int, int] = (16, 16)

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'svg': self.svg,
            'size': list(self.size),
            'anchor': list(self.anchor),
        }


class IconCache:
    """Bounded memo of MarkerIcon keyed by rounded heading and colour."""

    def __init__(
        self,
        max_entries: Optional[int] = None,
        heading_step: Optional[int] = None,
    ):
        self.max_entries = max_entries or config.display.max_icons
        self.heading_step = heading_step or config.display.heading_step

        self._icons: Dict[str, MarkerIcon] = {}
        self._lock = threading.RLock()

    def get(self, heading: Optional[float], color: str) -> MarkerIcon:
        rounded = round_heading(heading, self.heading_step)
        key = f'{rounded}-{color}'

        with self._lock:
            icon = self._icons.get(key)
            if icon is not None:
                return icon

            icon = MarkerIcon(key=key, svg=_PLANE_SVG.format(heading=rounded, color=color))
            if len(self._icons) < self.max_entries:
                self._icons[key] = icon
            else:
                logger.debug(f'Icon cache full, not storing {key}')
            return icon

    def __len__(self) -> int:
        with self._lock:
            return len(self._icons)
