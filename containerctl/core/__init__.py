"""Core functionality for containerctl."""
