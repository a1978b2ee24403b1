"""
Snapshot differ - turns two snapshots into add/update/remove operations.

Entities are matched by their stable id only. An id present in both
snapshots is assumed to be the same aircraft; no identity reconciliation
is attempted when an id changes.

Operations within a batch touch distinct ids, so they can be applied in
any order.
"""

from dataclasses import dataclass
from typing import List, MutableMapping, Iterable, Union

from flightweather.models import Entity, Snapshot


@dataclass(frozen=True)
class Add:
    entity: Entity

    @property
    def entity_id(self) -> str:
        return self.entity.id


@dataclass(frozen=True)
class Update:
    entity: Entity

    @property
    def entity_id(self) -> str:
        return self.entity.id


@dataclass(frozen=True)
class Remove:
    id: str

    @property
    def entity_id(self) -> str:
        return self.id


DiffOperation = Union[Add, Update, Remove]


def diff(
    previous: Snapshot,
    latest: Snapshot,
    skip_unchanged: bool = True,
) -> List[DiffOperation]:
    """
    Compute the operations that turn `previous` into `latest`.

    Args:
        previous: Snapshot currently rendered
        latest: Newly fetched snapshot
        skip_unchanged: Omit Update for entities that compare equal

    Returns:
        List of operations; order carries no meaning
    """
    operations: List[DiffOperation] = []

    for entity_id, entity in latest.entities.items():
        old = previous.entities.get(entity_id)
        if old is None:
            operations.append(Add(entity))
        elif not (skip_unchanged and old == entity):
            operations.append(Update(entity))

    for entity_id in previous.entities:
        if entity_id not in latest.entities:
            operations.append(Remove(entity_id))

    return operations


def apply_operations(
    entities: MutableMapping[str, Entity],
    operations: Iterable[DiffOperation],
) -> MutableMapping[str, Entity]:
    """Apply a batch of operations to an id -> Entity mapping in place."""
    for op in operations:
        if isinstance(op, Remove):
            entities.pop(op.id, None)
        else:
            entities[op.entity.id] = op.entity
    return entities


def operation_to_dict(op: DiffOperation) -> dict:
    """JSON form used by the updates endpoint."""
    if isinstance(op, Remove):
        return {'op': 'remove', 'id': op.id}
    kind = 'add' if isinstance(op, Add) else 'update'
    return {'op': kind, 'id': op.entity.id, 'entity': op.entity.to_dict()}
