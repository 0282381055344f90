"""Vault audit log analyzer: group failures into incidents and annotate them."""

__version__ = "0.1.0"
