# Error types raised by the credential and login subsystems.
# Created: 2026-10-18
#
# The CLI is the only place these are turned into exit codes; everything
# below it raises and lets the caller decide.

from __future__ import annotations


class SlackStatusError(Exception):
    """Base class for all slack-status errors."""


class UnknownDomainError(SlackStatusError):
    """The requested (or default) domain has no stored token."""

    def __init__(self, domain: str = "") -> None:
        self.domain = domain
        if domain:
            super().__init__(f"unknown domain: {domain}")
        else:
            super().__init__("unknown domain: no default domain is configured")


class ConfigIOError(SlackStatusError):
    """Reading, writing or parsing a file in the config directory failed."""


class ConfigurationError(SlackStatusError):
    """Required settings (client id/secret) are missing."""


class ListenerError(SlackStatusError):
    """The OAuth callback listener failed."""


class ListenerBindError(ListenerError):
    """The callback address could not be bound or the TLS material is invalid."""


class ListenerTimeoutError(ListenerError):
    """No callback arrived before the listener gave up."""


class MissingAuthorizationCodeError(ListenerError):
    """The callback request carried no ``code`` parameter."""


class TokenExchangeError(SlackStatusError):
    """Slack rejected the authorization code or client credentials."""


class CertificateGenerationError(SlackStatusError):
    """A self-signed certificate could not be generated or written."""


class SlackAPIError(SlackStatusError):
    """A Slack Web API call returned ``ok: false`` or failed in transport."""

    def __init__(self, method: str, error: str) -> None:
        self.method = method
        self.error = error
        super().__init__(f"{method} failed: {error}")
