"""Command-line interface for mongocache."""
