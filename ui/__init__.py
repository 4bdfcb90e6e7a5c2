"""
User interface helpers
"""
from .prompt import get_user_confirmation, format_confidence

__all__ = ['get_user_confirmation', 'format_confidence']
