"""Shared utilities: configuration, constants and input validation."""
