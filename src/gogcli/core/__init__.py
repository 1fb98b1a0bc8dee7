"""Core primitives shared by every command: errors and exit codes."""
