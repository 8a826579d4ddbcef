"""Bowl Timer - A meditation timer with a singing-bowl cue.

This package provides:
- A session state machine with a countdown-to-start and a running countdown
- A singing-bowl audio cue with a timed fade-out
- Background video playback stretched to the session length
"""

__version__ = "0.2.0"
