"""
Core security utilities for the framework.

Provides webhook signature verification and request admission gates.
"""

from core.security.admission import (
    DEFAULT_POLICY,
    PUBLIC_POLICY,
    AdmissionPipeline,
    RoutePolicy,
)
from core.security.gates import (
    API_KEY_HEADER,
    SIGNATURE_HEADER,
    CredentialGate,
    DenialReason,
    GateDecision,
    SignatureGate,
    SignaturePayloadMode,
)
from core.security.signature import ISignatureVerifier, SignatureVerifier

__all__ = [
    # Signature
    "ISignatureVerifier",
    "SignatureVerifier",
    # Gates
    "API_KEY_HEADER",
    "SIGNATURE_HEADER",
    "CredentialGate",
    "DenialReason",
    "GateDecision",
    "SignatureGate",
    "SignaturePayloadMode",
    # Admission
    "AdmissionPipeline",
    "RoutePolicy",
    "DEFAULT_POLICY",
    "PUBLIC_POLICY",
]
