import os
import json
import uuid
import sqlite3
import yaml
from datetime import datetime
from rapidfuzz import fuzz
from config.settings import DB_PATH, ACCOUNTS_PATH, DEFAULT_PATTERN_ACCURACY
from utils.paths import normalize_path

# Minimum partial_ratio for a display-name lookup to count as a hit
NAME_MATCH_MIN = 80

# Seconds credited per switch / per blocked wrong-identity commit
SWITCH_SECONDS_SAVED = 3
ERROR_SECONDS_SAVED = 300


def _connect(db_path):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _new_id():
    return uuid.uuid4().hex[:12]


def _parse_time(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def init_db(db_path=DB_PATH):
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path)
    c = conn.cursor()
    c.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id TEXT PRIMARY KEY,
            name TEXT,
            git_name TEXT,
            email TEXT,
            patterns TEXT,
            priority INTEGER,
            description TEXT,
            is_default INTEGER,
            usage_count INTEGER,
            last_used TEXT,
            created_at TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            path TEXT UNIQUE,
            name TEXT,
            remote_url TEXT,
            account_id TEXT,
            last_accessed TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS patterns (
            id TEXT PRIMARY KEY,
            name TEXT UNIQUE,
            pattern TEXT,
            account_id TEXT,
            confidence REAL,
            created_by TEXT,
            usage_count INTEGER
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS switches (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id TEXT,
            account_id TEXT,
            timestamp TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS analytics (
            key TEXT PRIMARY KEY,
            value REAL
        )
    """)
    conn.commit()
    conn.close()


# --- Accounts ---------------------------------------------------------------

def _row_to_account(row):
    try:
        patterns = json.loads(row["patterns"] or "[]")
    except ValueError:
        patterns = []
    return {
        "id": row["id"],
        "name": row["name"],
        "git_name": row["git_name"],
        "email": row["email"],
        "patterns": patterns if isinstance(patterns, list) else [],
        "priority": row["priority"] if row["priority"] is not None else 5,
        "description": row["description"],
        "is_default": bool(row["is_default"]),
        "usage_count": row["usage_count"] or 0,
        "last_used": _parse_time(row["last_used"]),
    }


def get_accounts(db_path=DB_PATH):
    """Get all accounts in insertion order"""
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("SELECT * FROM accounts ORDER BY rowid")
        rows = c.fetchall()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load accounts: {e}")
        return []

    return [_row_to_account(row) for row in rows]


def get_account(account_id, db_path=DB_PATH):
    for account in get_accounts(db_path):
        if account["id"] == account_id:
            return account
    return None


def find_account(query, db_path=DB_PATH):
    """
    Resolve an account from user input

    Exact id or email wins; otherwise the display name with the best
    fuzzy partial match (at least NAME_MATCH_MIN) is returned.

    Args:
        query: Account id, email or (part of) the display name

    Returns:
        dict or None: The account
    """
    if not query:
        return None

    accounts = get_accounts(db_path)
    for account in accounts:
        if query == account["id"] or query.lower() == (account["email"] or "").lower():
            return account

    best_account = None
    best_score = 0
    for account in accounts:
        score = fuzz.partial_ratio(query.lower(), (account["name"] or "").lower())
        if score > best_score:
            best_score = score
            best_account = account

    if best_score >= NAME_MATCH_MIN:
        return best_account
    return None


def add_account(name, git_name, email, patterns=None, priority=5, description=None,
                is_default=False, account_id=None, db_path=DB_PATH):
    """
    Add a new account

    Returns:
        dict or None: The stored account (None when the write failed)
    """
    account_id = account_id or _new_id()
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            """
            INSERT INTO accounts (id, name, git_name, email, patterns, priority,
                                  description, is_default, usage_count, last_used, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, NULL, ?)
            """,
            (account_id, name, git_name, email, json.dumps(list(patterns or [])),
             int(priority), description, int(bool(is_default)), datetime.now().isoformat())
        )
        conn.commit()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to save account: {e}")
        return None

    return get_account(account_id, db_path)


def update_account_usage(account_id, when=None, db_path=DB_PATH):
    """Bump usage_count and set last_used for an account"""
    when = when or datetime.now()
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            "UPDATE accounts SET usage_count = COALESCE(usage_count, 0) + 1, last_used = ? WHERE id = ?",
            (when.isoformat(), account_id)
        )
        updated = c.rowcount > 0
        conn.commit()
        conn.close()
        return updated
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to update account usage: {e}")
        return False


def load_accounts_file(accounts_path=ACCOUNTS_PATH, db_path=DB_PATH):
    """
    Import accounts from a YAML file

    Format:
        accounts:
          - id: work
            name: Work
            git_name: Alice Smith
            email: alice@acme.com
            patterns: ["*acme*"]
            priority: 8
            description: work account
            default: false

    Accounts whose id or email is already stored are skipped.

    Returns:
        list: Accounts that were added
    """
    if not os.path.exists(accounts_path):
        return []

    try:
        with open(accounts_path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"[ERROR] Failed to read accounts file: {e}")
        return []

    existing = get_accounts(db_path)
    known_ids = {a["id"] for a in existing}
    known_emails = {(a["email"] or "").lower() for a in existing}

    added = []
    for entry in data.get("accounts", []) or []:
        email = entry.get("email")
        if not email or not entry.get("git_name"):
            print(f"[WARN] Skipping account without git_name/email: {entry.get('name')}")
            continue
        if entry.get("id") in known_ids or email.lower() in known_emails:
            continue

        account = add_account(
            name=entry.get("name") or entry["git_name"],
            git_name=entry["git_name"],
            email=email,
            patterns=entry.get("patterns", []),
            priority=entry.get("priority", 5),
            description=entry.get("description"),
            is_default=entry.get("default", False),
            account_id=entry.get("id"),
            db_path=db_path
        )
        if account:
            added.append(account)
            known_ids.add(account["id"])
            known_emails.add(email.lower())

    return added


# --- Projects ---------------------------------------------------------------

def _row_to_project(row):
    return {
        "id": row["id"],
        "path": row["path"],
        "name": row["name"],
        "remote_url": row["remote_url"],
        "account_id": row["account_id"],
        "last_accessed": _parse_time(row["last_accessed"]),
    }


def get_projects(db_path=DB_PATH):
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("SELECT * FROM projects ORDER BY rowid")
        rows = c.fetchall()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load projects: {e}")
        return []

    return [_row_to_project(row) for row in rows]


def find_project_by_path(path, db_path=DB_PATH):
    """Find a tracked project by its root path"""
    if not path:
        return None
    target = normalize_path(path)
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("SELECT * FROM projects WHERE path = ?", (target,))
        row = c.fetchone()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load project: {e}")
        return None

    return _row_to_project(row) if row else None


def upsert_project(path, remote_url=None, account_id=None, name=None, db_path=DB_PATH):
    """
    Add or update a project (keyed by its normalized root path)

    Fields passed as None keep their stored value.

    Returns:
        dict or None: The stored project
    """
    target = normalize_path(path)
    now = datetime.now().isoformat()
    existing = find_project_by_path(target, db_path)

    try:
        conn = _connect(db_path)
        c = conn.cursor()
        if existing:
            c.execute(
                """
                UPDATE projects
                SET remote_url = COALESCE(?, remote_url),
                    account_id = COALESCE(?, account_id),
                    name = COALESCE(?, name),
                    last_accessed = ?
                WHERE id = ?
                """,
                (remote_url, account_id, name, now, existing["id"])
            )
        else:
            c.execute(
                "INSERT INTO projects (id, path, name, remote_url, account_id, last_accessed) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (_new_id(), target, name or os.path.basename(target), remote_url, account_id, now)
            )
        conn.commit()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to save project: {e}")
        return None

    return find_project_by_path(target, db_path)


def bind_project(project_id, account_id, when=None, db_path=DB_PATH):
    """Bind a project to an account and touch last_accessed"""
    when = when or datetime.now()
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            "UPDATE projects SET account_id = ?, last_accessed = ? WHERE id = ?",
            (account_id, when.isoformat(), project_id)
        )
        updated = c.rowcount > 0
        conn.commit()
        conn.close()
        return updated
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to bind project: {e}")
        return False


# --- Patterns ---------------------------------------------------------------

def _row_to_pattern(row):
    return {
        "id": row["id"],
        "name": row["name"],
        "pattern": row["pattern"],
        "account_id": row["account_id"],
        "confidence": row["confidence"] if row["confidence"] is not None else 0.0,
        "created_by": row["created_by"] or "user",
        "usage_count": row["usage_count"] or 0,
    }


def get_patterns(db_path=DB_PATH):
    """Get all global patterns in insertion order"""
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("SELECT * FROM patterns ORDER BY rowid")
        rows = c.fetchall()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load patterns: {e}")
        return []

    return [_row_to_pattern(row) for row in rows]


def save_pattern(pattern, db_path=DB_PATH):
    """
    Insert or replace a single pattern

    A pattern with the same name replaces the stored one.
    """
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            "INSERT OR REPLACE INTO patterns (id, name, pattern, account_id, confidence, created_by, usage_count) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (pattern["id"], pattern["name"], pattern["pattern"], pattern["account_id"],
             pattern["confidence"], pattern["created_by"], pattern["usage_count"])
        )
        conn.commit()
        conn.close()
        return True
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to save pattern: {e}")
        return False


def save_patterns(patterns, db_path=DB_PATH):
    """Replace the stored pattern set with the given snapshot"""
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("DELETE FROM patterns")
        c.executemany(
            "INSERT OR REPLACE INTO patterns (id, name, pattern, account_id, confidence, created_by, usage_count) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (p["id"], p["name"], p["pattern"], p["account_id"],
                 p["confidence"], p["created_by"], p["usage_count"])
                for p in patterns
            ]
        )
        conn.commit()
        conn.close()
        return True
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to save patterns: {e}")
        return False


def delete_pattern(pattern_id, db_path=DB_PATH):
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("DELETE FROM patterns WHERE id = ?", (pattern_id,))
        deleted = c.rowcount > 0
        conn.commit()
        conn.close()
        return deleted
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to delete pattern: {e}")
        return False


# --- Analytics --------------------------------------------------------------

def _increment(c, key, amount):
    c.execute(
        "INSERT INTO analytics (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = value + excluded.value",
        (key, amount)
    )


def record_account_switch(project_id, account_id, when=None, db_path=DB_PATH):
    """
    Record a switch in the analytics store and bind the project to the account
    """
    when = when or datetime.now()
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            "INSERT INTO switches (project_id, account_id, timestamp) VALUES (?, ?, ?)",
            (project_id, account_id, when.isoformat())
        )
        _increment(c, "project_switches", 1)
        _increment(c, "times_saved", SWITCH_SECONDS_SAVED)
        conn.commit()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to record account switch: {e}")
        return False

    return bind_project(project_id, account_id, when, db_path)


def record_error_prevented(project_id, db_path=DB_PATH):
    """Count a commit that was stopped for carrying the wrong identity"""
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        _increment(c, "errors_prevented", 1)
        _increment(c, "times_saved", ERROR_SECONDS_SAVED)
        conn.commit()
        conn.close()
        return True
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to record prevented error: {e}")
        return False


def set_analytics_value(key, value, db_path=DB_PATH):
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("INSERT OR REPLACE INTO analytics (key, value) VALUES (?, ?)", (key, value))
        conn.commit()
        conn.close()
        return True
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to save analytics: {e}")
        return False


def get_analytics(db_path=DB_PATH):
    """
    Get usage analytics

    Returns:
        dict: {
            'project_switches': int,
            'errors_prevented': int,
            'times_saved': int,       # seconds
            'pattern_accuracy': float,
            'account_usage': {account_id: int}
        }
    """
    analytics = {
        "project_switches": 0,
        "errors_prevented": 0,
        "times_saved": 0,
        "pattern_accuracy": DEFAULT_PATTERN_ACCURACY,
        "account_usage": {},
    }
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute("SELECT key, value FROM analytics")
        for key, value in c.fetchall():
            if key == "pattern_accuracy":
                analytics[key] = value
            else:
                analytics[key] = int(value)

        c.execute("SELECT account_id, COUNT(*) FROM switches GROUP BY account_id")
        analytics["account_usage"] = dict(c.fetchall())
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load analytics: {e}")

    return analytics


def get_switch_history(limit=10, db_path=DB_PATH):
    try:
        conn = _connect(db_path)
        c = conn.cursor()
        c.execute(
            "SELECT project_id, account_id, timestamp FROM switches ORDER BY id DESC LIMIT ?",
            (limit,)
        )
        rows = c.fetchall()
        conn.close()
    except sqlite3.Error as e:
        print(f"[ERROR] Failed to load switch history: {e}")
        return []

    return [
        {
            "project_id": row[0],
            "account_id": row[1],
            "timestamp": row[2],
        }
        for row in rows
    ]
