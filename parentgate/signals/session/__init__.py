"""Session intent detectors derived from the recent turn window."""

from parentgate.signals.session.disengagement import DisengagementDetector
from parentgate.signals.session.distress import DistressDetector
from parentgate.signals.session.repetition import RepetitionDetector
from parentgate.signals.session.topic import OffTopicDetector, OnTopicDetector

__all__ = [
    "DisengagementDetector",
    "DistressDetector",
    "RepetitionDetector",
    "OffTopicDetector",
    "OnTopicDetector",
]
