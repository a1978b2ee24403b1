"""
Weather observation model.

Values are converted from the NWS SI units at construction time
(Celsius -> Fahrenheit, km/h -> mph, metres -> km) so cached
observations are display-ready.
"""

from dataclasses import dataclass
from typing import List, Optional


def celsius_to_fahrenheit(celsius: Optional[float]) -> Optional[int]:
    if celsius is None:
        return None
    return round(celsius * 9 / 5 + 32)


def kph_to_mph(kph: Optional[float]) -> Optional[int]:
    if kph is None:
        return None
    return round(kph * 0.621371)


def meters_to_km(meters: Optional[float]) -> Optional[float]:
    if meters is None:
        return None
    return round(meters / 1000, 1)


def _quantity(properties: dict, name: str) -> Optional[float]:
    """Read `{name: {'value': ...}}` from an NWS observation."""
    quantity = properties.get(name) or {}
    return quantity.get('value')


@dataclass(frozen=True)
class WeatherObservation:
    """Latest surface observation from the station nearest a point."""
    temperature_f: Optional[int]
    description: str
    humidity: Optional[float]
    wind_speed_mph: Optional[int]
    wind_direction: Optional[float]
    visibility_km: Optional[float]
    pressure_pa: Optional[float]
    dewpoint_f: Optional[int]
    station: Optional[str]
    timestamp: Optional[str]

    @classmethod
    def from_nws(cls, properties: dict) -> 'WeatherObservation':
        """
        Convert the `properties` block of an NWS observation.

        Raises TypeError/AttributeError on a malformed block.
        """
        return cls(
            temperature_f=celsius_to_fahrenheit(_quantity(properties, 'temperature')),
            description=properties.get('textDescription') or 'N/A',
            humidity=_quantity(properties, 'relativeHumidity'),
            wind_speed_mph=kph_to_mph(_quantity(properties, 'windSpeed')),
            wind_direction=_quantity(properties, 'windDirection'),
            visibility_km=meters_to_km(_quantity(properties, 'visibility')),
            pressure_pa=_quantity(properties, 'barometricPressure'),
            dewpoint_f=celsius_to_fahrenheit(_quantity(properties, 'dewpoint')),
            station=properties.get('station'),
            timestamp=properties.get('timestamp'),
        )

    def alerts(
        self,
        high_wind_mph: float = 25.0,
        low_visibility_km: float = 5.0,
    ) -> List[str]:
        """Conditions worth flagging to a pilot-minded viewer."""
        alerts = []
        if self.wind_speed_mph is not None and self.wind_speed_mph > high_wind_mph:
            alerts.append('High Wind Warning')
        if self.visibility_km is not None and self.visibility_km < low_visibility_km:
            alerts.append('Low Visibility')
        return alerts

    def to_dict(self) -> dict:
        return {
            'temperature_f': self.temperature_f,
            'description': self.description,
            'humidity': self.humidity,
            'wind_speed_mph': self.wind_speed_mph,
            'wind_direction': self.wind_direction,
            'visibility_km': self.visibility_km,
            'pressure_pa': self.pressure_pa,
            'dewpoint_f': self.dewpoint_f,
            'station': self.station,
            'timestamp': self.timestamp,
        }
