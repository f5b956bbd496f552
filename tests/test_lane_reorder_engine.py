import logging
import random
import sqlite3
import threading

import pytest

from shiptivity_api.app.core.db import get_cursor, get_database_path
from shiptivity_api.app.core.errors import (
    ClientNotFoundError,
    InternalStoreError,
    InvalidPriorityError,
    MissingPriorityError,
    PreconditionViolationError,
)
from shiptivity_api.app.schemas.client import STATUSES
from shiptivity_api.app.services.client_store import ClientStore
from shiptivity_api.app.services.lane_reorder import LaneReorderEngine, find_lane_violations


def _lane(clients, status):
    return [(c.name, c.priority) for c in sorted(clients, key=lambda c: c.priority) if c.status == status]


def _flaky_connect(allowed_updates):
    """Connection factory whose cursors fail after ``allowed_updates`` UPDATEs."""
    budget = {"updates": allowed_updates}

    class FlakyCursor(sqlite3.Cursor):
        def execute(self, sql, parameters=()):
            if sql.lstrip().upper().startswith("UPDATE"):
                if budget["updates"] <= 0:
                    raise sqlite3.OperationalError("disk I/O error")
                budget["updates"] -= 1
            return super().execute(sql, parameters)

    class FlakyConnection(sqlite3.Connection):
        def cursor(self, factory=FlakyCursor):
            return super().cursor(factory)

    def connect():
        conn = sqlite3.connect(get_database_path(), factory=FlakyConnection)
        conn.row_factory = sqlite3.Row
        return conn

    return connect


def test_move_across_lanes_is_persisted(board):
    clients = LaneReorderEngine().reorder(board["B"], "in-progress", 1)
    assert _lane(clients, "backlog") == [("A", 1), ("C", 2)]
    assert _lane(clients, "in-progress") == [("B", 1), ("D", 2), ("E", 3)]
    assert ClientStore().get_all() == clients


def test_move_within_lane(board):
    clients = LaneReorderEngine().reorder(board["C"], "backlog", 1)
    assert _lane(clients, "backlog") == [("C", 1), ("A", 2), ("B", 3)]


def test_append_to_complete_closes_source_gap(board):
    clients = LaneReorderEngine().reorder(board["D"], "complete")
    assert _lane(clients, "complete") == [("F", 1), ("D", 2)]
    assert _lane(clients, "in-progress") == [("E", 1)]


def test_complete_client_without_status_or_priority_is_rejected(add_clients):
    ids = add_clients(("X", "complete", 1), ("Y", "complete", 2))
    before = ClientStore().get_all()
    with pytest.raises(MissingPriorityError):
        LaneReorderEngine().reorder(ids["X"])
    assert ClientStore().get_all() == before


def test_same_slot_move_is_stable(board):
    before = {(c.id, c.status, c.priority) for c in ClientStore().get_all()}
    clients = LaneReorderEngine().reorder(board["E"], "in-progress", 2)
    assert {(c.id, c.status, c.priority) for c in clients} == before


def test_unknown_client_changes_nothing(board):
    before = ClientStore().get_all()
    with pytest.raises(ClientNotFoundError):
        LaneReorderEngine().reorder(999, "backlog", 1)
    assert ClientStore().get_all() == before


def test_negative_priority_changes_nothing(board):
    before = ClientStore().get_all()
    with pytest.raises(InvalidPriorityError):
        LaneReorderEngine().reorder(board["A"], "backlog", -1)
    assert ClientStore().get_all() == before


def test_drifted_subject_is_not_repaired(add_clients, caplog):
    ids = add_clients(("A", "backlog", 1), ("B", "backlog", 5))
    before = ClientStore().get_all()
    with caplog.at_level(logging.WARNING):
        with pytest.raises(PreconditionViolationError):
            LaneReorderEngine().reorder(ids["B"], "backlog", 1)
    assert ClientStore().get_all() == before
    assert "Refusing to move client" in caplog.text


def test_drift_in_other_lanes_is_renumbered(add_clients, caplog):
    ids = add_clients(("A", "backlog", 1), ("D", "in-progress", 3), ("E", "in-progress", 7))
    with caplog.at_level(logging.WARNING):
        clients = LaneReorderEngine().reorder(ids["A"], "complete", 1)
    assert _lane(clients, "in-progress") == [("D", 1), ("E", 2)]
    assert "in-progress" in caplog.text


def test_failed_batch_rolls_back(board):
    before = ClientStore().get_all()
    engine = LaneReorderEngine(ClientStore(connect=_flaky_connect(allowed_updates=1)))
    with pytest.raises(InternalStoreError):
        engine.reorder(board["C"], "backlog", 1)
    assert ClientStore().get_all() == before


def test_concurrent_moves_keep_lanes_dense(database):
    with get_cursor() as cursor:
        for status in STATUSES:
            for priority in range(1, 5):
                cursor.execute(
                    "INSERT INTO clients (name, status, priority) VALUES (?, ?, ?)",
                    (f"{status}-{priority}", status, priority),
                )
    ids = [c.id for c in ClientStore().get_all()]
    errors = []

    def worker(seed):
        rng = random.Random(seed)
        engine = LaneReorderEngine()
        try:
            for _ in range(15):
                engine.reorder(rng.choice(ids), rng.choice(STATUSES), rng.randint(1, 6))
        except Exception as exc:  # collected and asserted below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(seed,)) for seed in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    clients = ClientStore().get_all()
    assert len(clients) == len(ids)
    assert find_lane_violations(clients) == []
