"""Crowd-review consensus and reputation engine for guild vetting."""

__version__ = "0.1.0"
