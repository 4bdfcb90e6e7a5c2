"""
Terminal prompts and formatting for the hook CLI
"""


def get_user_confirmation(message, default=True):
    """
    Ask a yes/no question on the terminal (e.g. before removing hooks)

    Args:
        message: The message to display
        default: Default response if user just presses Enter (or stdin is closed)

    Returns:
        bool: True if user confirms, False otherwise
    """
    default_str = "Y/n" if default else "y/N"
    try:
        response = input(f"{message} [{default_str}]: ").strip().lower()
    except EOFError:
        return default

    if not response:
        return default

    return response in ['y', 'yes']


def format_confidence(confidence):
    """Render a confidence value as a percentage"""
    return f"{(confidence or 0):.0%}"
