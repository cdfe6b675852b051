"""Proposal Studio - proposal generation, parsing and preview rendering."""

__version__ = "1.0.0"
