"""Bowl Timer User App (TUI).

Interactive Textual TUI for sitting a timed meditation session:
choose a duration, wait out the countdown-to-start, and let the
bowl sound at the start and fade away at the end.
"""

__version__ = "0.2.0"
