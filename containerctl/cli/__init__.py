"""Command line interface for containerctl."""
