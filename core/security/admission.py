"""
Request Admission Pipeline.

Runs the gates in a fixed order against an inbound request:

    CredentialGate -> SignatureGate

Per-route behaviour comes from a declarative policy table keyed by route
name, passed in at construction. Routes missing from the table get the
strict default (API key required, signature required on mutating verbs).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Request

from core.security.gates import (
    API_KEY_HEADER,
    SIGNATURE_HEADER,
    CredentialGate,
    GateDecision,
    SignatureGate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutePolicy:
    """Admission requirements for a single route."""
    requires_auth: bool = True
    requires_signature: bool = True


DEFAULT_POLICY = RoutePolicy()
PUBLIC_POLICY = RoutePolicy(requires_auth=False, requires_signature=False)


class AdmissionPipeline:
    """
    Ordered gate chain for inbound requests.

    Example:
        pipeline = AdmissionPipeline(
            credential_gate,
            signature_gate,
            policies={"health_check": PUBLIC_POLICY},
        )
        decision = await pipeline.admit(request)
    """

    def __init__(
        self,
        credential_gate: CredentialGate,
        signature_gate: SignatureGate,
        policies: Optional[Mapping[str, RoutePolicy]] = None,
    ) -> None:
        self._credential_gate = credential_gate
        self._signature_gate = signature_gate
        self._policies: dict[str, RoutePolicy] = dict(policies or {})

    def policy_for(self, route_name: Optional[str]) -> RoutePolicy:
        """Look up the policy for a route name."""
        if route_name is None:
            return DEFAULT_POLICY
        return self._policies.get(route_name, DEFAULT_POLICY)

    async def admit(self, request: Request) -> GateDecision:
        """
        Run every gate against the request, stopping at the first denial.

        The body is only read when the signature gate needs it.
        """
        policy = self.policy_for(_route_name(request))

        decision = self._credential_gate.check(
            request.headers.get(API_KEY_HEADER),
            is_public=not policy.requires_auth,
        )
        if not decision.admitted:
            return decision

        skip_signature = not policy.requires_signature
        body = b""
        if self._signature_gate.requires_signature(request.method, skip_signature):
            body = await request.body()

        return self._signature_gate.check(
            request.method,
            body,
            request.headers.get(SIGNATURE_HEADER),
            skip=skip_signature,
        )


def _route_name(request: Request) -> Optional[str]:
    route = request.scope.get("route")
    return getattr(route, "name", None)
