"""nameless-dashboard — Meeting statistics from the chapter's shared spreadsheets."""

__version__ = "0.1.0"

UNKNOWN_MEMBER: str = "Unknown"
