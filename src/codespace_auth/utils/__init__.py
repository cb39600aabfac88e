"""Shared constants and errors for Codespace Auth."""
