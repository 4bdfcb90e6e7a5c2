# telemetry/events.py
import sys


def log_event(event, payload=None):
    """
    Log telemetry events

    Prints to stderr so it never mixes into output the pre-commit hook
    shows the user.

    No names. No emails. No remote URLs.

    Args:
        event: Event name (e.g. 'account_switch', 'error_prevented')
        payload: Optional event data (dict)
    """
    payload = payload or {}
    print(f"[TELEMETRY] {event} | {payload}", file=sys.stderr)
