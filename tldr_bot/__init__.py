"""TLDR Bot: Claude-generated channel summaries delivered by DM."""

__version__ = "0.1.0"
