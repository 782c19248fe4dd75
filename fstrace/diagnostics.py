"""
Call-context capture for diagnostic telemetry
"""

import traceback

from .codec import flatten

# Frames inside the proxy layer itself are noise for the reader
_SKIP_FRAMES = 2


def capture_call_context(limit=None):
    """Return the caller's stack as one flat line."""
    frames = traceback.format_stack(limit=limit)[:-_SKIP_FRAMES]
    return flatten("".join(frames))


def format_call_context(limit=None):
    """Return the caller's stack in its usual multi-line form, for logging."""
    return "".join(traceback.format_stack(limit=limit)[:-_SKIP_FRAMES])
