"""Dev availability service — SQLite helpers for registered usernames."""

import sqlite3

from signup_form.config import AVAILABILITY_DB_PATH

DATABASE_PATH = AVAILABILITY_DB_PATH

RESERVED_USERNAMES = ("admin", "root", "system")


def get_conn():
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    conn = get_conn()
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                username TEXT PRIMARY KEY COLLATE NOCASE,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.executemany(
            "INSERT OR IGNORE INTO users (username) VALUES (?)",
            [(name,) for name in RESERVED_USERNAMES],
        )
        conn.commit()
    finally:
        conn.close()


def username_exists(username: str) -> bool:
    conn = get_conn()
    try:
        row = conn.execute("SELECT 1 FROM users WHERE username = ?", (username,)).fetchone()
    finally:
        conn.close()
    return row is not None


def add_username(username: str) -> bool:
    """Insert ``username``. Returns False if it is already taken."""
    conn = get_conn()
    try:
        conn.execute("INSERT INTO users (username) VALUES (?)", (username,))
        conn.commit()
    except sqlite3.IntegrityError:
        return False
    finally:
        conn.close()
    return True
