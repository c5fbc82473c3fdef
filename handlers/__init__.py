from .browser import is_challenge_page, launch_stealth_browser, navigate, open_page
from .interaction import (
    Click,
    Pause,
    SequenceResult,
    WaitFor,
    run_actions,
)

__all__ = [
    "Click",
    "Pause",
    "SequenceResult",
    "WaitFor",
    "is_challenge_page",
    "launch_stealth_browser",
    "navigate",
    "open_page",
    "run_actions",
]
