"""Sizing engine and cursor state machine."""
