# storage/pattern_store.py
"""
Pattern store: glob rules binding a URL fragment to an account

Holds an in-memory snapshot of the patterns table. The scorer and the
learner work on that snapshot; nothing touches the database until
save() (or a mutating call, which saves immediately).
"""
import uuid
from config.settings import DB_PATH, PATTERN_STEP, PATTERN_FLOOR
from storage.local_store import get_patterns, save_pattern, save_patterns
from storage.local_store import delete_pattern as delete_pattern_row


def clamp(value, low=0.0, high=1.0):
    """Clamp a confidence value; non-numbers become the lower bound"""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return low
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


class PatternStore:
    """Learned and user-defined URL patterns"""

    def __init__(self, db_path=DB_PATH):
        """
        Initialize the pattern store

        Args:
            db_path: State database holding the patterns table
        """
        self.db_path = db_path
        self._patterns = []
        self.load()

    def load(self):
        """(Re)load the snapshot from the database"""
        self._patterns = get_patterns(self.db_path)
        return self

    def save(self):
        """Persist the snapshot; returns False when the write failed"""
        return save_patterns(self._patterns, self.db_path)

    def get_patterns(self):
        return [dict(p) for p in self._patterns]

    def patterns_for_account(self, account_id):
        return [dict(p) for p in self._patterns if p["account_id"] == account_id]

    def get(self, pattern_id):
        for p in self._patterns:
            if p["id"] == pattern_id:
                return dict(p)
        return None

    def find(self, pattern, account_id):
        """Find a pattern by (glob expression, owner account)"""
        for p in self._patterns:
            if p["pattern"] == pattern and p["account_id"] == account_id:
                return dict(p)
        return None

    def add_pattern(self, pattern, account_id, confidence=1.0, created_by="user",
                    name=None, usage_count=0):
        """
        Add a new pattern

        Names are unique: adding a pattern under an existing name replaces it.

        Args:
            pattern: Glob expression matched against remote URLs (e.g. '*acme*')
            account_id: Owner account
            confidence: Initial confidence, clamped to [0, 1]
            created_by: 'user' or 'system'
            name: Display name (defaults to the glob expression)

        Returns:
            dict: The stored pattern
        """
        new_pattern = {
            "id": uuid.uuid4().hex[:12],
            "name": name or pattern,
            "pattern": pattern,
            "account_id": account_id,
            "confidence": clamp(confidence),
            "created_by": created_by if created_by in ("user", "system") else "user",
            "usage_count": usage_count,
        }

        self._patterns = [p for p in self._patterns if p["name"] != new_pattern["name"]]
        self._patterns.append(new_pattern)
        # INSERT OR REPLACE drops the stored row holding the same name
        save_pattern(new_pattern, self.db_path)
        return dict(new_pattern)

    def update_pattern(self, pattern_id, **updates):
        """Update fields of a pattern (its id never changes)"""
        for p in self._patterns:
            if p["id"] == pattern_id:
                updates.pop("id", None)
                p.update(updates)
                p["confidence"] = clamp(p["confidence"])
                self.save()
                return dict(p)
        return None

    def delete_pattern(self, pattern_id):
        remaining = [p for p in self._patterns if p["id"] != pattern_id]
        if len(remaining) == len(self._patterns):
            return False
        self._patterns = remaining
        return delete_pattern_row(pattern_id, self.db_path)

    def record_feedback(self, pattern_id, agreed):
        """
        Adjust a pattern after the user agreed or disagreed with it

        Agreement: +PATTERN_STEP (capped at 1.0)
        Disagreement: -PATTERN_STEP (floored at PATTERN_FLOOR)
        """
        pattern = self.get(pattern_id)
        if pattern is None:
            return None

        if agreed:
            confidence = min(pattern["confidence"] + PATTERN_STEP, 1.0)
        else:
            confidence = max(pattern["confidence"] - PATTERN_STEP, PATTERN_FLOOR)

        return self.update_pattern(
            pattern_id,
            confidence=round(confidence, 6),
            usage_count=pattern["usage_count"] + 1
        )
