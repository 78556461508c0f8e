"""Compound Eye - engineering friction observations and remediation actions."""

__version__ = "0.3.0"
