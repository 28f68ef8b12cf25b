# records.py
import time
from typing import List, Optional, Tuple

import aiosqlite

LEADERBOARD_LIMIT = 10


# ----------------- DB helpers -----------------
async def init_db(db_path: str):
    async with aiosqlite.connect(db_path) as db:
        await db.execute("""
        CREATE TABLE IF NOT EXISTS results(
            user_id INTEGER,
            username TEXT,
            elapsed REAL,
            ts INTEGER
        )
        """)
        await db.commit()


async def get_best_time(db_path: str, user_id: int) -> Optional[float]:
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute("SELECT MIN(elapsed) FROM results WHERE user_id=?", (user_id,))
        row = await cur.fetchone()
        return row[0] if row else None


async def add_result(db_path: str, user_id: int, username: str, elapsed: float) -> bool:
    """Store a finished board. Returns True when it beats the user's previous best."""
    previous = await get_best_time(db_path, user_id)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT INTO results(user_id, username, elapsed, ts) VALUES (?, ?, ?, ?)",
            (user_id, username, elapsed, int(time.time())),
        )
        await db.commit()
    return previous is None or elapsed < previous


async def get_leaderboard(db_path: str, limit: int = LEADERBOARD_LIMIT) -> List[Tuple[str, float]]:
    async with aiosqlite.connect(db_path) as db:
        # SQLite takes the bare username column from the row holding MIN(elapsed)
        cur = await db.execute(
            "SELECT username, MIN(elapsed) AS best FROM results GROUP BY user_id ORDER BY best ASC LIMIT ?",
            (limit,),
        )
        rows = await cur.fetchall()
        return [(username, best) for username, best in rows]
