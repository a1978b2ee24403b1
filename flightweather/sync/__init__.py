"""
Live synchronization: snapshot diffing and throttled batch application.
"""

from flightweather.sync.differ import (
    Add,
    DiffOperation,
    Remove,
    Update,
    apply_operations,
    diff,
    operation_to_dict,
)
from flightweather.sync.scheduler import SchedulerState, UpdateScheduler

__all__ = [
    'Add',
    'DiffOperation',
    'Remove',
    'Update',
    'apply_operations',
    'diff',
    'operation_to_dict',
    'SchedulerState',
    'UpdateScheduler',
]
