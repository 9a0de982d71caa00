"""Interactive Slack OAuth login.

Resolves TLS material, runs a one-shot loopback callback listener, and
exchanges the captured code for an access token.
"""

from slackstatus.auth.callback import CallbackListener
from slackstatus.auth.flow import SlackApp, authenticate
from slackstatus.auth.tls import CertificateResolver, TLSMaterial

__all__ = [
    "CallbackListener",
    "CertificateResolver",
    "SlackApp",
    "TLSMaterial",
    "authenticate",
]
