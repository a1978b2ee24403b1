"""
Callsign classifier - picks a colour bucket for each aircraft marker.

Evaluation is a priority cascade; the first rule that matches wins:

1. No callsign            -> country default
2. Military prefixes      -> MILITARY
3. US 'AF' + 3-4 digits   -> MILITARY
4. Known 3-letter code    -> that carrier
5. Cargo markers          -> FEDEX / UPS / ATLAS
6. N-number tail          -> GENERAL_AVIATION
7. Regional prefixes      -> that regional (or US default)
8. Country default

Specific identity signals are always checked before country fallbacks.
Unknown callsigns simply land in a default bucket.
"""

import re
from enum import Enum
from typing import Optional

from flightweather.config import config
from flightweather.models import UNKNOWN_LABEL


class ColorBucket(str, Enum):
    """Marker colour groups, keyed by ICAO airline code where one exists."""
    # Major US mainline
    UNITED = 'UAL'
    AMERICAN = 'AAL'
    DELTA = 'DAL'
    SOUTHWEST = 'SWA'
    JETBLUE = 'JBU'
    ALASKA = 'ASA'
    FRONTIER = 'FFT'
    SPIRIT = 'NKS'

    # Cargo
    FEDEX = 'FDX'
    UPS = 'UPS'
    ATLAS = 'GTI'

    # Regionals
    SKYWEST = 'SKW'
    REPUBLIC = 'RPA'
    ENVOY = 'ENY'
    AIR_WISCONSIN = 'AWI'
    COMPASS = 'CPZ'

    # Military / government / business
    MILITARY = 'MIL'
    GOVERNMENT = 'GOV'
    GENERAL_AVIATION = 'BIZ'

    # Fallbacks
    DEFAULT_US = 'DEFAULT_US'
    DEFAULT_INTL = 'DEFAULT_INTL'
    DEFAULT = 'DEFAULT'

    @property
    def color(self) -> str:
        return BUCKET_COLORS[self]


BUCKET_COLORS = {
    ColorBucket.UNITED: '#ec4899',          # hot pink
    ColorBucket.AMERICAN: '#dc2626',        # red
    ColorBucket.DELTA: '#9333ea',           # purple
    ColorBucket.SOUTHWEST: '#f97316',       # orange
    ColorBucket.JETBLUE: '#10b981',         # green
    ColorBucket.ALASKA: '#f59e0b',          # yellow
    ColorBucket.FRONTIER: '#14b8a6',        # turquoise
    ColorBucket.SPIRIT: '#eab308',          # bright yellow
    ColorBucket.FEDEX: '#7c2d12',           # brown
    ColorBucket.UPS: '#b91c1c',             # crimson
    ColorBucket.ATLAS: '#92400e',           # burnt orange
    ColorBucket.SKYWEST: '#06b6d4',         # cyan
    ColorBucket.REPUBLIC: '#059669',        # spring green
    ColorBucket.ENVOY: '#0891b2',           # deep cyan
    ColorBucket.AIR_WISCONSIN: '#84cc16',   # lime green
    ColorBucket.COMPASS: '#3b82f6',         # cornflower blue
    ColorBucket.MILITARY: '#991b1b',        # blood red
    ColorBucket.GOVERNMENT: '#d97706',      # amber orange
    ColorBucket.GENERAL_AVIATION: '#4b5563',  # charcoal gray
    ColorBucket.DEFAULT_US: '#c2410c',      # rust orange
    ColorBucket.DEFAULT_INTL: '#7c2d12',    # mahogany brown
    ColorBucket.DEFAULT: '#6b7280',         # slate gray
}

# 3-letter callsign prefix -> bucket
CARRIER_CODES = {
    bucket.value: bucket
    for bucket in ColorBucket
    if len(bucket.value) == 3
}

MILITARY_PATTERNS = [
    re.compile(prefix)
    for prefix in (r'^RCH', r'^SAM', r'^SPAR', r'^VEN', r'^TANK', r'^BULL', r'^EAG', r'^NATO')
]
US_AIR_FORCE_PATTERN = re.compile(r'^AF\d{3,4}')
CARGO_MARKERS = [
    (re.compile(r'FDX|FX'), ColorBucket.FEDEX),
    (re.compile(r'UPS'), ColorBucket.UPS),
    (re.compile(r'GTI'), ColorBucket.ATLAS),
]
TAIL_NUMBER_PATTERN = re.compile(r'^N\d{1,5}[A-Z]{0,2}$')
REGIONAL_PATTERN = re.compile(r'^(SKW|RPA|ENY|AWI|CPZ)')


def is_home_country(origin_region: Optional[str], home_country: Optional[str] = None) -> bool:
    home_country = home_country or config.display.home_country
    return bool(origin_region) and home_country in origin_region


def _country_default(home: bool) -> ColorBucket:
    return ColorBucket.DEFAULT_US if home else ColorBucket.DEFAULT_INTL


def classify(
    label: Optional[str],
    origin_region: Optional[str],
    home_country: Optional[str] = None,
) -> ColorBucket:
    """
    Map a callsign and origin country to a colour bucket.

    Pure and total: any input yields a bucket.
    """
    home = is_home_country(origin_region, home_country)

    callsign = (label or '').strip().upper()
    if not callsign or callsign == UNKNOWN_LABEL:
        return _country_default(home)

    if any(pattern.match(callsign) for pattern in MILITARY_PATTERNS):
        return ColorBucket.MILITARY

    if home and US_AIR_FORCE_PATTERN.match(callsign):
        return ColorBucket.MILITARY

    code3 = callsign[:3]
    if code3 in CARRIER_CODES:
        return CARRIER_CODES[code3]

    for pattern, bucket in CARGO_MARKERS:
        if pattern.search(callsign):
            return bucket

    if TAIL_NUMBER_PATTERN.match(callsign):
        return ColorBucket.GENERAL_AVIATION

    if REGIONAL_PATTERN.match(callsign):
        return CARRIER_CODES.get(code3, ColorBucket.DEFAULT_US)

    return _country_default(home)
