# noqa
from parentgate.services.attempt_tracker import AttemptTracker
from parentgate.services.credential_service import CredentialService
from parentgate.services.intent_classifier import SessionIntentClassifier
from parentgate.services.mode_gate import ModeGate
from parentgate.services.notifications import NotificationHub
from parentgate.services.pin_authenticator import PinAuthenticator
from parentgate.services.redirection_coordinator import RedirectionCoordinator

__all__ = [
    "AttemptTracker",
    "CredentialService",
    "SessionIntentClassifier",
    "ModeGate",
    "NotificationHub",
    "PinAuthenticator",
    "RedirectionCoordinator",
]
