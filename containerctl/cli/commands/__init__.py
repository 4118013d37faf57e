"""containerctl sub-commands."""
