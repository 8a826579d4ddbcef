"""Shared helpers for Bowl Timer."""
