"""
PIN authentication.

PinAuthenticator compares a normalized candidate against the salted hash
held by the credential store. It keeps no mutable state, so concurrent
validations with independent inputs are safe.

Format rules are enforced before the store is touched:
    - exactly `pin_length` ASCII digits (surrounding whitespace ignored)
    - anything else raises InvalidPinFormatError, which callers must not
      count as a failed attempt
"""

import asyncio
import hashlib
import hmac
import re
import secrets

import structlog

from parentgate.core.exceptions import (
    CredentialStoreUnavailableError,
    InvalidPinFormatError,
)
from parentgate.domain.models.auth import HashedCredential, PinStrength
from parentgate.services.protocols import ICredentialStore

log = structlog.get_logger(__name__)

HASH_ITERATIONS = 60_000

# Guessable even when well-formed; rated WEAK rather than rejected
COMMON_PINS = frozenset(
    {
        "123456", "654321", "111111", "000000", "121212", "112233",
        "123123", "696969", "101010", "123321", "131313",
        "1234", "4321", "1111", "0000", "1212", "6969",
    }
)


def new_salt() -> str:
    return secrets.token_hex(16)


def hash_secret(secret: str, salt: str) -> str:
    """PBKDF2-SHA256 of secret with a hex salt, hex encoded."""
    digest = hashlib.pbkdf2_hmac(
        "sha256", secret.encode("utf-8"), bytes.fromhex(salt), HASH_ITERATIONS
    )
    return digest.hex()


def normalize_pin(candidate, length: int) -> str:
    """Return the candidate as a clean digit string or raise InvalidPinFormatError."""
    if not isinstance(candidate, str):
        raise InvalidPinFormatError(f"PIN must be exactly {length} digits")
    pin = candidate.strip()
    if not re.fullmatch(rf"[0-9]{{{length}}}", pin):
        raise InvalidPinFormatError(f"PIN must be exactly {length} digits")
    return pin


def _is_sequential(digits: list[int]) -> bool:
    steps = {b - a for a, b in zip(digits, digits[1:])}
    return steps == {1} or steps == {-1}


def rate_pin_strength(pin: str, length: int = 6) -> PinStrength:
    """Rate a PIN for the setup screen.

    Ascending/descending runs (123456, 987654) and a single repeated digit
    are TOO_WEAK; well-known PINs are WEAK; everything else is STRONG.
    """
    try:
        pin = normalize_pin(pin, length)
    except InvalidPinFormatError:
        return PinStrength.INVALID

    digits = [int(c) for c in pin]
    if _is_sequential(digits) or len(set(digits)) == 1:
        return PinStrength.TOO_WEAK
    if pin in COMMON_PINS:
        return PinStrength.WEAK
    return PinStrength.STRONG


class PinAuthenticator:
    """Validates candidate PINs against the credential store."""

    def __init__(
        self,
        store: ICredentialStore,
        pin_length: int = 6,
        store_timeout_seconds: float = 2.0,
    ):
        self.store = store
        self.pin_length = pin_length
        self.store_timeout_seconds = store_timeout_seconds

    def normalize(self, candidate) -> str:
        return normalize_pin(candidate, self.pin_length)

    async def load_credential(self) -> HashedCredential:
        """Load the stored credential, bounded by the store timeout.

        Raises:
            CredentialStoreUnavailableError: Store failed, timed out, or
                holds no credential (CredentialNotConfiguredError)
        """
        try:
            return await asyncio.wait_for(
                self.store.load(), timeout=self.store_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            log.error("credential_store_timeout", timeout=self.store_timeout_seconds)
            raise CredentialStoreUnavailableError(
                "Credential store did not answer in time"
            ) from e

    async def validate(self, candidate) -> bool:
        """Check a candidate PIN.

        Returns:
            True on match, False on mismatch (never raises on a mismatch)

        Raises:
            InvalidPinFormatError: Malformed candidate, store not consulted
            CredentialStoreUnavailableError: Credential could not be loaded
        """
        pin = self.normalize(candidate)
        credential = await self.load_credential()
        matched = hmac.compare_digest(
            hash_secret(pin, credential.pin_salt), credential.pin_hash
        )
        log.debug("pin_validated", matched=matched)
        return matched

    async def verify_recovery_answer(self, answer: str) -> bool:
        """Check the security answer (trimmed, case-insensitive)."""
        credential = await self.load_credential()
        if not credential.recovery_answer_hash:
            return False
        return hmac.compare_digest(
            hash_secret(normalize_answer(answer), credential.recovery_salt),
            credential.recovery_answer_hash,
        )


def normalize_answer(answer: str) -> str:
    return (answer or "").strip().lower()
