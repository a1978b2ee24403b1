"""
Analytics module.

NumPy summaries of the tracked fleet for the metrics endpoints.
"""

from flightweather.analytics.fleet import fleet_statistics

__all__ = ['fleet_statistics']
