"""CLI module for blvdiff."""
