"""Hand landmark detection and feature preparation."""
