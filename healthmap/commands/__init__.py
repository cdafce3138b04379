"""
Commands Package.

This package contains the command classes for optimistic health map edits.
Each command applies locally, persists through the gateway, and carries the
prior state needed to roll back.
"""
