"""Lightweight CLI helpers for inspecting interview sessions."""
from __future__ import annotations

import argparse
from typing import List

from storage.keywords import top_keywords
from storage.messages import count_messages, list_messages
from storage.sqlite import connect


def tail_sessions(limit: int = 20) -> List[str]:
    conn = connect()
    try:
        rows = conn.execute(
            """
            SELECT updated_at, id, user_id, job_type, status, turn_count, max_turns, current_interviewer_id
            FROM interview_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    finally:
        conn.close()
    return [
        f"[{r['updated_at']}] {r['id']} user={r['user_id']} job={r['job_type']} "
        f"{r['status']} {r['turn_count']}/{r['max_turns']} next={r['current_interviewer_id']} messages={count_messages(r['id'])}"
        for r in rows
    ]


def transcript(session_id: str) -> List[str]:
    lines = []
    for msg in list_messages(session_id):
        speaker = msg.interviewer_id or msg.role
        follow_up = ""
        if msg.structured_response:
            follow_up = " (follow-up)" if msg.structured_response.get("follow_up_intent") else ""
        lines.append(f"#{msg.seq} {speaker}{follow_up}: {msg.content}")
    return lines


def keyword_memory(user_id: str, limit: int = 20) -> List[str]:
    return [f"{kw.category}: {kw.keyword} x{kw.mentioned_count}" for kw in top_keywords(user_id, limit=limit)]


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--transcript", help="Print the message log of one session")
    parser.add_argument("--keywords", help="Show the keyword memory of one user")
    args = parser.parse_args()

    output: List[str] = []
    if args.tail_sessions:
        output += tail_sessions(args.tail_sessions)
    if args.transcript:
        output += transcript(args.transcript)
    if args.keywords:
        output += keyword_memory(args.keywords)
    for line in output:
        print(line)


if __name__ == "__main__":
    main()
