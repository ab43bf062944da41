"""Command-line interface for the evidence store."""
