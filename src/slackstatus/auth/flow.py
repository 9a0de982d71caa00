# Authorization Flow — send the user to Slack, catch the redirect locally,
# and trade the code for an access token.
# Created: 2026-10-18

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass

from slackstatus.auth.callback import CallbackListener
from slackstatus.auth.tls import CertificateResolver, TLSMaterial
from slackstatus.config import Settings
from slackstatus.errors import ConfigurationError
from slackstatus.slack import SlackClient

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://slack.com/oauth/authorize"
SCOPES = ["dnd:write", "users.profile:write", "team:read"]
USER_SCOPES = ["dnd:write", "users.profile:write", "team:read"]

_CERT_NOTE = (
    "NOTE: After you authenticate with Slack, it will redirect you to a server running "
    "on your local computer. Your browser will present a security error because it "
    "can't verify the server. You will need to manually add an exception or tell your "
    "browser to proceed anyway."
)


@dataclass(frozen=True)
class SlackApp:
    """Everything needed for one login attempt."""

    client_id: str
    client_secret: str
    redirect_uri: str
    listen_host: str
    listen_port: int
    listen_path: str
    scopes: tuple[str, ...] = tuple(SCOPES)
    user_scopes: tuple[str, ...] = tuple(USER_SCOPES)

    @classmethod
    def from_settings(cls, settings: Settings, tls: TLSMaterial | None) -> SlackApp:
        """Build the app, choosing https when a certificate is available."""
        scheme = "https" if tls is not None else "http"
        redirect_uri = (
            f"{scheme}://{settings.listen_host}:{settings.listen_port}{settings.listen_path}"
        )
        return cls(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=redirect_uri,
            listen_host=settings.listen_host,
            listen_port=settings.listen_port,
            listen_path=settings.listen_path,
        )

    def auth_url(self) -> str:
        """URL the user opens to grant access."""
        params = {
            "scope": ",".join(self.scopes),
            "user_scope": ",".join(self.user_scopes),
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }
        return f"{AUTHORIZE_URL}?{urllib.parse.urlencode(params, safe=',')}"


def authenticate(
    settings: Settings,
    *,
    resolver: CertificateResolver | None = None,
    client: SlackClient | None = None,
    echo: Callable[[str], None] = print,
) -> str:
    """Run the interactive login and return a new access token.

    Any failure propagates; the caller restarts from scratch if it wants to
    try again.

    Raises:
        ConfigurationError: No client id/secret configured.
        ListenerError: The callback listener failed (see CallbackListener).
        TokenExchangeError: Slack rejected the code.
    """
    if not settings.client_id or not settings.client_secret:
        raise ConfigurationError(
            "no Slack client id/secret configured; set SLACK_STATUS_CLIENT_ID "
            "and SLACK_STATUS_CLIENT_SECRET"
        )

    if resolver is None:
        resolver = CertificateResolver.from_settings(settings)
    tls = resolver.resolve()

    app = SlackApp.from_settings(settings, tls)

    echo("To authenticate, go to the following URL:")
    if tls is not None:
        echo(_CERT_NOTE)
    echo(app.auth_url())

    listener = CallbackListener(
        app.listen_host,
        app.listen_port,
        app.listen_path,
        tls=tls,
        timeout=settings.callback_timeout,
    )
    code = listener.listen_for_code()
    logger.debug("Received authorization code, exchanging for token")

    if client is None:
        client = SlackClient(api_base=settings.api_base, timeout=settings.http_timeout)
    return client.exchange_code(app.client_id, app.client_secret, code, app.redirect_uri)
