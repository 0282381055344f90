"""Incident signatures: the grouping key for failure events."""

SEPARATOR = "|"


def build_signature(path: str, error: str) -> str:
    """Join *path* with the trimmed error text. No other normalization."""
    return f"{path}{SEPARATOR}{error.strip()}"
