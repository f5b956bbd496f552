"""
Lane reordering.

Clients live in three swimlanes and each lane is densely ranked:
priorities are exactly ``1..n`` with 1 at the top.  Moving a card
therefore touches more than one record.  ``plan_reorder`` works out,
from a snapshot of all clients, what every lane looks like after the
move; ``LaneReorderEngine`` loads that snapshot and writes the plan
back inside one ``ClientStore.run_atomically`` scope so concurrent
moves never interleave.

The lane order is always rebuilt from a fresh snapshot; nothing is
cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from shiptivity_api.app.core.errors import (
    ClientNotFoundError,
    InternalStoreError,
    InvalidPriorityError,
    InvalidStatusError,
    MissingPriorityError,
    PreconditionViolationError,
)
from shiptivity_api.app.schemas.client import STATUSES, ClientRead
from shiptivity_api.app.services.client_store import ClientStore


logger = logging.getLogger(__name__)

# Lane that accepts a move without an explicit rank (appends to the bottom).
APPEND_STATUS = "complete"


@dataclass
class ReorderPlan:
    """Outcome of a move computed from a snapshot."""

    client: ClientRead
    lanes: Dict[str, List[ClientRead]]
    changes: List[ClientRead] = field(default_factory=list)


def validate_target(status: Optional[str], priority: Optional[int]) -> None:
    """Reject malformed move targets before anything is read or written."""
    if status is not None and status not in STATUSES:
        raise InvalidStatusError(
            "Status can only be one of the following: [backlog | in-progress | complete]."
        )
    if priority is not None:
        if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
            raise InvalidPriorityError("Priority can only be positive integer.")


def sort_lanes(clients: Iterable[ClientRead]) -> Dict[str, List[ClientRead]]:
    """Split clients into lanes ordered top to bottom.

    Ties on ``priority`` are broken by ``id``.  Clients with an unknown
    status are left out.
    """
    lanes: Dict[str, List[ClientRead]] = {status: [] for status in STATUSES}
    for client in clients:
        if client.status in lanes:
            lanes[client.status].append(client)
    for lane in lanes.values():
        lane.sort(key=lambda c: (c.priority, c.id))
    return lanes


def find_lane_violations(clients: Iterable[ClientRead]) -> List[str]:
    """Return the statuses whose priorities are not exactly ``1..n``."""
    violations = []
    for status, lane in sort_lanes(clients).items():
        if [c.priority for c in lane] != list(range(1, len(lane) + 1)):
            violations.append(status)
    return violations


def _remove_at(lane: List[ClientRead], index: int) -> ClientRead:
    return lane.pop(index)


def _insert_at(lane: List[ClientRead], index: int, client: ClientRead) -> int:
    """Insert ``client`` at ``index``, clamped to the end of the lane."""
    index = min(index, len(lane))
    lane.insert(index, client)
    return index


def plan_reorder(
    clients: Iterable[ClientRead],
    client_id: int,
    target_status: Optional[str] = None,
    target_priority: Optional[int] = None,
) -> ReorderPlan:
    """Compute every lane after moving one client.

    Parameters
    ----------
    clients : Iterable[ClientRead]
        Snapshot of all clients, in any order.
    client_id : int
        Client to move.
    target_status : Optional[str]
        Destination lane.  ``None`` keeps the current lane.
    target_priority : Optional[int]
        Desired 1‑based rank in the destination lane.  Ranks past the
        end of the lane append.  May only be omitted when
        ``target_status`` is ``complete``, which appends to the bottom.

    Returns
    -------
    ReorderPlan
        All three lanes renumbered ``1..n`` and the clients whose
        status or priority differ from the snapshot.

    Raises
    ------
    InvalidStatusError, InvalidPriorityError
        Malformed target.
    ClientNotFoundError
        ``client_id`` is not in the snapshot.
    MissingPriorityError
        No rank given and ``target_status`` is not ``complete``.
    PreconditionViolationError
        The client's stored priority does not point at itself within
        its lane.
    """
    validate_target(target_status, target_priority)

    snapshot = {client.id: client for client in clients}
    subject = snapshot.get(client_id)
    if subject is None:
        raise ClientNotFoundError("Cannot find client with that id.")

    # Only an explicit move to ``complete`` may omit the rank.
    if target_priority is None and target_status != APPEND_STATUS:
        raise MissingPriorityError(
            "Priority is required unless the status is set to 'complete'."
        )
    destination = target_status or subject.status

    lanes = sort_lanes(snapshot.values())
    if subject.status not in lanes:
        raise PreconditionViolationError(
            f"Client {client_id} has unknown status {subject.status!r}."
        )
    source = lanes[subject.status]
    index = subject.priority - 1
    if not 0 <= index < len(source) or source[index].id != client_id:
        raise PreconditionViolationError(
            f"Client {client_id} has priority {subject.priority} but is not at that "
            f"position in the '{subject.status}' lane."
        )
    _remove_at(source, index)

    target = lanes[destination]
    rank = target_priority if target_priority is not None else len(target) + 1
    _insert_at(target, rank - 1, subject)

    changes = []
    for status in STATUSES:
        renumbered = []
        for position, client in enumerate(lanes[status], start=1):
            if client.status != status or client.priority != position:
                client = client.model_copy(update={"status": status, "priority": position})
                changes.append(client)
            renumbered.append(client)
        lanes[status] = renumbered

    moved = next(c for c in lanes[destination] if c.id == client_id)
    return ReorderPlan(client=moved, lanes=lanes, changes=changes)


class LaneReorderEngine:
    """Apply moves to the stored lanes."""

    def __init__(self, store: Optional[ClientStore] = None) -> None:
        self.store = store or ClientStore()

    def reorder(
        self,
        client_id: int,
        target_status: Optional[str] = None,
        target_priority: Optional[int] = None,
    ) -> List[ClientRead]:
        """Move a client and return the full, renumbered client list.

        The snapshot read, the recomputation, the writes and the final
        read all happen inside one atomic store scope.  On any error
        nothing is written.
        """
        validate_target(target_status, target_priority)

        def work(store: ClientStore) -> Tuple[ReorderPlan, List[ClientRead]]:
            snapshot = store.get_all()
            drifted = find_lane_violations(snapshot)
            if drifted:
                logger.warning(
                    "Lanes %s are not densely ranked; moving client %s renumbers them",
                    ", ".join(drifted),
                    client_id,
                )
            plan = plan_reorder(snapshot, client_id, target_status, target_priority)
            for client in plan.changes:
                store.update_status_and_priority(client.id, client.status, client.priority)
            return plan, store.get_all()

        try:
            plan, clients = self.store.run_atomically(work)
        except PreconditionViolationError as exc:
            logger.warning("Refusing to move client %s: %s", client_id, exc.long_message)
            raise
        except InternalStoreError as exc:
            logger.error("Moving client %s failed and was rolled back: %s", client_id, exc.long_message)
            raise

        logger.info(
            "Moved client %s to %s #%s (%d records updated)",
            client_id,
            plan.client.status,
            plan.client.priority,
            len(plan.changes),
        )
        return clients
