"""
AppContext - Dependency Injection Container.

Constructed once at process start and stored on ``app.state.context``.
Owns the admission pipeline and the idempotency cache so request handlers
never touch module-level singletons.
"""

import logging
from typing import Mapping, Optional

from core.idempotency import IdempotencyCache
from core.providers import ConfigurationProvider, get_configuration_provider
from core.security.admission import PUBLIC_POLICY, AdmissionPipeline, RoutePolicy
from core.security.gates import CredentialGate, SignatureGate, SignaturePayloadMode
from core.security.signature import SignatureVerifier

# Admission requirements per route name. Anything not listed requires an
# API key, plus a signature on mutating verbs.
ROUTE_POLICIES: Mapping[str, RoutePolicy] = {
    "health_check": PUBLIC_POLICY,
    "readiness_check": PUBLIC_POLICY,
    "create_webhook": RoutePolicy(requires_auth=True, requires_signature=True),
    "list_webhooks": RoutePolicy(requires_auth=True, requires_signature=False),
    "get_webhook": RoutePolicy(requires_auth=True, requires_signature=False),
}


class AppContext:
    """
    Application Context - Central Dependency Injection Container.
    """

    def __init__(
        self,
        config: Optional[ConfigurationProvider] = None,
        route_policies: Optional[Mapping[str, RoutePolicy]] = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._config = config or get_configuration_provider()

        self._signature_verifier = SignatureVerifier(
            self._config.get("security.webhook_secret", "")
        )
        self._credential_gate = CredentialGate(self._config.get("security.api_key", ""))
        self._signature_gate = SignatureGate(
            self._signature_verifier,
            payload_mode=_payload_mode(self._config.get("security.signature_mode", "raw")),
        )
        self._admission = AdmissionPipeline(
            self._credential_gate,
            self._signature_gate,
            policies=ROUTE_POLICIES if route_policies is None else route_policies,
        )

        ttl_hours = float(self._config.get("idempotency.ttl_hours", 24))
        self._idempotency_cache = IdempotencyCache(ttl_seconds=ttl_hours * 3600)

        self._logger.info(
            f"AppContext ready (signature mode: {self._signature_gate.payload_mode.value}, "
            f"idempotency ttl: {ttl_hours}h)"
        )
        if not self._config.is_security_configured():
            self._logger.error(
                "Security credentials missing: protected routes will reject every request "
                "until API_KEY and WEBHOOK_SECRET are both set"
            )

    @property
    def config(self) -> ConfigurationProvider:
        """Access the configuration provider."""
        return self._config

    @property
    def signature_verifier(self) -> SignatureVerifier:
        return self._signature_verifier

    @property
    def admission(self) -> AdmissionPipeline:
        return self._admission

    @property
    def idempotency_cache(self) -> IdempotencyCache:
        return self._idempotency_cache


def _payload_mode(value: str) -> SignaturePayloadMode:
    try:
        return SignaturePayloadMode(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Unknown WEBHOOK_SIGNATURE_MODE '{value}'. Using 'raw' mode."
        )
        return SignaturePayloadMode.RAW
