"""Textual screens for bowl-timer."""
