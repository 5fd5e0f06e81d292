"""
Webhook Signature Module.

HMAC-SHA256 signing and verification of inbound webhook payloads.

Security Features:
- Lowercase hex HMAC-SHA256 digests keyed by the shared signing secret
- Constant-time comparison of decoded digest bytes
- Malformed input degrades to ``False``; verification never raises

Usage:
    verifier = SignatureVerifier(secret="shared-secret")
    signature = verifier.generate(body)
    verifier.verify(body, signature)  # True
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")

Payload = Union[bytes, str]


# =============================================================================
# Protocol (Interface)
# =============================================================================

class ISignatureVerifier(Protocol):
    """Protocol for signature verification consumed by SignatureGate."""

    def verify(self, payload: Payload, signature: Optional[str]) -> bool:
        """Verify a hex signature against the configured secret."""
        ...


# =============================================================================
# HMAC-SHA256 Implementation
# =============================================================================

class SignatureVerifier:
    """
    HMAC-SHA256 webhook signature verifier.

    Signatures are plain lowercase hex digests (no ``sha256=`` prefix),
    computed over the payload bytes with the configured signing secret.
    """

    def __init__(self, secret: str) -> None:
        """
        Initialize the verifier.

        Args:
            secret: Shared signing secret. An empty secret makes every
                    verification fail.
        """
        self._secret = secret or ""
        if not self._secret:
            logger.error(
                "Webhook signing secret is not configured. "
                "All signed requests will be rejected."
            )

    @property
    def is_configured(self) -> bool:
        """Whether a signing secret is available."""
        return bool(self._secret)

    def generate(self, payload: Payload) -> str:
        """
        Generate the HMAC-SHA256 signature for a payload.

        Args:
            payload: Request body bytes (``str`` is encoded as UTF-8).

        Returns:
            str: Lowercase hexadecimal digest.
        """
        return _hmac_hex(self._secret, payload)

    def verify(self, payload: Payload, signature: Optional[str]) -> bool:
        """
        Verify a signature against the configured secret.

        Returns False for an empty, absent, non-hex or wrong-length
        signature, and when no secret is configured.
        """
        if not self._secret:
            return False
        return self.verify_with_secret(payload, signature, self._secret)

    def verify_with_secret(
        self,
        payload: Payload,
        signature: Optional[str],
        secret: Optional[str],
    ) -> bool:
        """
        Verify a signature against an explicit secret.

        Hook for per-tenant secrets; same failure policy as ``verify``.
        """
        if not signature or not secret:
            return False

        provided = _decode_hex(signature)
        if provided is None:
            return False

        expected = bytes.fromhex(_hmac_hex(secret, payload))
        if len(provided) != len(expected):
            return False

        return hmac.compare_digest(provided, expected)


# =============================================================================
# Helpers
# =============================================================================

def _to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return payload


def _hmac_hex(secret: str, payload: Payload) -> str:
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=_to_bytes(payload),
        digestmod=hashlib.sha256,
    ).hexdigest()


def _decode_hex(signature: str) -> Optional[bytes]:
    """Decode a hex string, or None if it is not strictly hex."""
    if not isinstance(signature, str) or not _HEX_PATTERN.fullmatch(signature):
        return None
    try:
        return bytes.fromhex(signature)
    except ValueError:
        # odd number of digits
        return None
