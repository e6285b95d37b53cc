"""Shared types, events, errors and the capture session."""
