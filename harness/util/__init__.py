"""Small helpers shared by the capability backends."""

from harness.util.strings import format_message, is_blank, is_not_blank

__all__ = ["format_message", "is_blank", "is_not_blank"]
