"""Intent detector pool.

All detectors are auto-registered via __init_subclass__ in IntentDetector.
Importing this package triggers registration of the built-in detectors.
"""

from parentgate.signals.intent_base import IntentDetector
from parentgate.signals.session import (
    DisengagementDetector,
    DistressDetector,
    OffTopicDetector,
    OnTopicDetector,
    RepetitionDetector,
)

__all__ = [
    "IntentDetector",
    "DisengagementDetector",
    "DistressDetector",
    "OffTopicDetector",
    "OnTopicDetector",
    "RepetitionDetector",
]
