"""
Admission Gates.

Each gate inspects one aspect of an inbound request and returns a
GateDecision. Gates never raise to deny; the admission dependency turns
a denial into the user-facing error.
"""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.security.signature import ISignatureVerifier

logger = logging.getLogger(__name__)


MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH"})

API_KEY_HEADER = "X-API-Key"
SIGNATURE_HEADER = "X-Webhook-Signature"


# =============================================================================
# Enums & Data Classes
# =============================================================================

class DenialReason(str, Enum):
    """Why a gate refused a request."""
    CREDENTIAL_REQUIRED = "credential_required"
    INVALID_CREDENTIAL = "invalid_credential"
    SIGNATURE_REQUIRED = "signature_required"
    INVALID_SIGNATURE = "invalid_signature"

    @property
    def status_code(self) -> int:
        if self in (DenialReason.CREDENTIAL_REQUIRED, DenialReason.INVALID_CREDENTIAL):
            return 401
        return 403

    @property
    def message(self) -> str:
        return _DENIAL_MESSAGES[self]


_DENIAL_MESSAGES = {
    DenialReason.CREDENTIAL_REQUIRED: "API key is required",
    DenialReason.INVALID_CREDENTIAL: "Invalid API key",
    DenialReason.SIGNATURE_REQUIRED: "Webhook signature is required",
    DenialReason.INVALID_SIGNATURE: "Invalid webhook signature",
}


class SignaturePayloadMode(str, Enum):
    """Which bytes the signature is expected to cover."""
    RAW = "raw"
    CANONICAL = "canonical"


@dataclass(frozen=True)
class GateDecision:
    """
    Outcome of a gate check.

    Attributes:
        admitted: Whether the request may proceed to the next stage.
        reason: Denial reason when not admitted.
    """
    admitted: bool
    reason: Optional[DenialReason] = None

    @classmethod
    def admit(cls) -> "GateDecision":
        return cls(admitted=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "GateDecision":
        return cls(admitted=False, reason=reason)


ADMITTED = GateDecision.admit()


# =============================================================================
# Credential Gate
# =============================================================================

class CredentialGate:
    """
    Checks the caller's API key against the configured value.

    Comparison uses ``hmac.compare_digest`` on UTF-8 bytes. An empty
    configured key denies every non-public request.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = (api_key or "").encode("utf-8")
        if not self._api_key:
            logger.error(
                "API key is not configured. All authenticated requests will be rejected."
            )

    def check(self, credential: Optional[str], is_public: bool = False) -> GateDecision:
        if is_public:
            return ADMITTED

        if not credential:
            return GateDecision.deny(DenialReason.CREDENTIAL_REQUIRED)

        if not self._api_key or not hmac.compare_digest(
            credential.encode("utf-8"), self._api_key
        ):
            return GateDecision.deny(DenialReason.INVALID_CREDENTIAL)

        return ADMITTED


# =============================================================================
# Signature Gate
# =============================================================================

class SignatureGate:
    """
    Checks the webhook signature on state-changing requests.

    Policy, in order:
        1. Routes marked to skip signatures are admitted.
        2. Non-mutating methods are admitted without a signature.
        3. A missing signature is denied.
        4. The signature is verified over the request body.
    """

    def __init__(
        self,
        verifier: ISignatureVerifier,
        payload_mode: SignaturePayloadMode = SignaturePayloadMode.RAW,
    ) -> None:
        self._verifier = verifier
        self._payload_mode = SignaturePayloadMode(payload_mode)

    @property
    def payload_mode(self) -> SignaturePayloadMode:
        return self._payload_mode

    @staticmethod
    def requires_signature(method: str, skip: bool = False) -> bool:
        """Whether a request with this method must carry a signature."""
        return not skip and method.upper() in MUTATING_METHODS

    def check(
        self,
        method: str,
        body: bytes,
        signature: Optional[str],
        skip: bool = False,
    ) -> GateDecision:
        if not self.requires_signature(method, skip):
            return ADMITTED

        if not signature:
            return GateDecision.deny(DenialReason.SIGNATURE_REQUIRED)

        signed_payload = self._signed_payload(body)
        if signed_payload is None or not self._verifier.verify(signed_payload, signature):
            return GateDecision.deny(DenialReason.INVALID_SIGNATURE)

        return ADMITTED

    def _signed_payload(self, body: bytes) -> Optional[bytes]:
        """
        Bytes the signature is computed over.

        RAW mode uses the body exactly as transmitted. CANONICAL mode
        re-serializes the parsed JSON compactly, keeping key order.
        """
        if self._payload_mode is SignaturePayloadMode.RAW:
            return body

        try:
            parsed = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return None
        return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
