"""Maintenance script to rebuild denormalized post counters.

Recomputes each post's ``comments_count`` from its comment records and its
liker list from its like records, repairing drift left by partial writes or
failed cascades.

Usage:
    python scripts/reconcile_post_counters.py

Environment overrides:
    RECONCILE_BATCH_SIZE=200
    RECONCILE_MAX_POSTS_PER_RUN=10000
    RECONCILE_MAX_ELAPSED_SECONDS=60
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from db.session import AsyncSessionMaker  # noqa: E402
from services.posts import list_post_ids, reconcile_post_counters  # noqa: E402

BATCH_SIZE_ENV = "RECONCILE_BATCH_SIZE"
MAX_POSTS_PER_RUN_ENV = "RECONCILE_MAX_POSTS_PER_RUN"
MAX_ELAPSED_SECONDS_ENV = "RECONCILE_MAX_ELAPSED_SECONDS"
DEFAULT_BATCH_SIZE = 200
DEFAULT_MAX_POSTS_PER_RUN = 10_000
DEFAULT_MAX_ELAPSED_SECONDS = 60


@dataclass(frozen=True)
class ReconcileSummary:
    posts_scanned: int
    posts_repaired: int
    stop_reason: str
    elapsed_ms: int


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


async def run(
    session_maker: async_sessionmaker[AsyncSession] = AsyncSessionMaker,
) -> ReconcileSummary:
    batch_size = _parse_positive_int(
        os.getenv(BATCH_SIZE_ENV),
        default=DEFAULT_BATCH_SIZE,
        label=BATCH_SIZE_ENV,
    )
    max_posts_per_run = _parse_positive_int(
        os.getenv(MAX_POSTS_PER_RUN_ENV),
        default=DEFAULT_MAX_POSTS_PER_RUN,
        label=MAX_POSTS_PER_RUN_ENV,
    )
    max_elapsed_seconds = _parse_positive_int(
        os.getenv(MAX_ELAPSED_SECONDS_ENV),
        default=DEFAULT_MAX_ELAPSED_SECONDS,
        label=MAX_ELAPSED_SECONDS_ENV,
    )

    started_at = perf_counter()
    posts_scanned = 0
    posts_repaired = 0
    after_id: str | None = None
    stop_reason = "completed"

    async with session_maker() as session:
        while stop_reason == "completed":
            post_ids = await list_post_ids(session, after_id=after_id, batch_size=batch_size)
            if not post_ids:
                break

            for post_id in post_ids:
                if posts_scanned >= max_posts_per_run:
                    stop_reason = "max_posts"
                    break
                if perf_counter() - started_at >= max_elapsed_seconds:
                    stop_reason = "max_elapsed_seconds"
                    break

                posts_scanned += 1
                outcome = await reconcile_post_counters(session, post_id)
                if outcome is not None and outcome.changed:
                    posts_repaired += 1
                    print(
                        f"Repaired post {post_id}: "
                        f"comments {outcome.comments_before}->{outcome.comments_after}, "
                        f"likes {len(outcome.likes_before)}->{len(outcome.likes_after)}"
                    )
            after_id = post_ids[-1]

    summary = ReconcileSummary(
        posts_scanned=posts_scanned,
        posts_repaired=posts_repaired,
        stop_reason=stop_reason,
        elapsed_ms=int((perf_counter() - started_at) * 1000),
    )
    print(
        "Post counter reconciliation complete: "
        f"posts_scanned={summary.posts_scanned}, posts_repaired={summary.posts_repaired}, "
        f"elapsed_ms={summary.elapsed_ms}, stop_reason={summary.stop_reason}"
    )
    return summary


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
