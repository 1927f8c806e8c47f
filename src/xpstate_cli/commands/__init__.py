"""CLI commands for xpstate."""
