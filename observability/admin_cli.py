"""Lightweight CLI helpers for inspecting persisted interview sessions."""
from __future__ import annotations

import argparse
from pathlib import Path

from config.settings import settings
from storage.sessions import SqliteSessionStore


def tail_sessions(limit: int = 20) -> None:
    store = SqliteSessionStore(Path(settings.DB_PATH))
    for session in store.list_recent(limit):
        graded = len(session.graded_indices())
        score = session.report.overall_score if session.report is not None else "-"
        print(
            f"[{session.updated_at.isoformat()}] {session.id} resume={session.resume_id} "
            f"{session.state.value} pointer={session.pointer}/{session.question_count} graded={graded} score={score}"
        )


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions)


if __name__ == "__main__":
    main()
