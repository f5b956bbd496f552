#!/usr/bin/env python3
"""
Seed the Shiptivity SQLite database with clients.

Creates the schema if needed and appends clients to the bottom of their
lane, so the priorities of each lane stay 1..n.  The input file is a
JSON list of objects with ``name`` and optional ``description`` and
``status`` (defaults to ``backlog``).  Without ``--file`` a small sample
board is inserted.

Usage:
    python seed_clients.py --db ./clients.db --file clients.json
"""

import argparse
import json
import os
import sys

from shiptivity_api.app.core.config import settings
from shiptivity_api.app.core.db import get_cursor, init_db
from shiptivity_api.app.schemas.client import STATUSES

SAMPLE_CLIENTS = [
    {"name": "Stark, White and Abbott", "description": "Cloned Optimal Architecture", "status": "in-progress"},
    {"name": "Wiza LLC", "description": "Exclusive Bandwidth-Monitored Implementation", "status": "complete"},
    {"name": "Nolan LLC", "description": "Vision-Oriented 4Thgeneration Graphicaluserinterface", "status": "backlog"},
    {"name": "Thompson PLC", "description": "Streamlined Regional Knowledgeuser", "status": "in-progress"},
    {"name": "Walker-Williamson", "description": "Team-Oriented 6Thgeneration Matrix", "status": "in-progress"},
    {"name": "Boehm and Sons", "description": "Automated Systematic Paradigm", "status": "backlog"},
    {"name": "Runolfsson, Hegmann and Block", "description": "Integrated Transitional Strategy", "status": "backlog"},
    {"name": "Schumm-Labadie", "description": "Operative Heuristic Challenge", "status": "backlog"},
]


def seed(clients: list) -> int:
    """Append ``clients`` to their lanes and return how many were inserted."""
    init_db()
    inserted = 0
    with get_cursor() as cursor:
        for client in clients:
            status = client.get("status") or "backlog"
            if status not in STATUSES:
                raise ValueError(f"Unknown status {status!r} for client {client.get('name')!r}")
            row = cursor.execute(
                "SELECT COUNT(*) AS total FROM clients WHERE status = ?",
                (status,),
            ).fetchone()
            cursor.execute(
                "INSERT INTO clients (name, description, status, priority) VALUES (?, ?, ?, ?)",
                (client["name"], client.get("description"), status, row["total"] + 1),
            )
            inserted += 1
    return inserted


def main():
    ap = argparse.ArgumentParser(description="Seed Shiptivity clients (SQLite).")
    ap.add_argument("--db", help="Path to SQLite DB file (defaults to DATABASE_URL)")
    ap.add_argument("--file", help="JSON file with a list of clients. If omitted, sample clients are used.")
    args = ap.parse_args()

    if args.db:
        settings.database_url = os.path.abspath(args.db)

    if args.file:
        if not os.path.exists(args.file):
            print(f"[!] File not found: {args.file}", file=sys.stderr)
            sys.exit(1)
        with open(args.file, encoding="utf-8") as fh:
            clients = json.load(fh)
    else:
        clients = SAMPLE_CLIENTS

    try:
        count = seed(clients)
    except (KeyError, ValueError) as exc:
        print(f"[!] Invalid client data: {exc}", file=sys.stderr)
        sys.exit(2)
    print(f"[+] Inserted {count} clients")


if __name__ == "__main__":
    main()
