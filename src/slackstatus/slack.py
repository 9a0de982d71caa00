# Slack Client — the handful of Slack Web API calls slack-status needs.
# Created: 2026-10-18

from __future__ import annotations

import logging
from typing import Any

import httpx

from slackstatus.errors import SlackAPIError, TokenExchangeError

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api/"


class SlackClient:
    """Synchronous HTTP client for the Slack Web API.

    ``token`` may be empty for calls that authenticate with client
    credentials instead (the OAuth code exchange).
    """

    def __init__(
        self, token: str = "", api_base: str = SLACK_API_BASE, timeout: float = 15.0
    ) -> None:
        self.token = token
        self.api_base = api_base
        self.timeout = timeout

    def _call(
        self,
        method: str,
        *,
        data: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> dict[str, Any]:
        """POST to a Web API method and return the decoded body.

        Raises:
            SlackAPIError: On transport failure or ``ok: false``.
        """
        headers = {"Authorization": f"Bearer {self.token}"} if auth else {}
        try:
            with httpx.Client(base_url=self.api_base, timeout=self.timeout) as client:
                resp = client.post(method, data=data, json=json, headers=headers)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as e:
            raise SlackAPIError(method, str(e)) from e
        except ValueError as e:
            raise SlackAPIError(method, f"invalid response: {e}") from e

        if not body.get("ok"):
            raise SlackAPIError(method, body.get("error", "unknown_error"))
        return body

    def exchange_code(
        self, client_id: str, client_secret: str, code: str, redirect_uri: str
    ) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            TokenExchangeError: If Slack rejects the code or credentials.
        """
        try:
            body = self._call(
                "oauth.access",
                data={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
                auth=False,
            )
        except SlackAPIError as e:
            raise TokenExchangeError(f"token exchange failed: {e.error}") from e

        token = body.get("access_token")
        if not token:
            raise TokenExchangeError("token exchange failed: no access_token in response")
        logger.debug("Obtained access token for team %s", body.get("team_name", "?"))
        return token

    def team_domain(self) -> str:
        """Return the workspace domain the token belongs to."""
        body = self._call("team.info")
        domain = body.get("team", {}).get("domain")
        if not domain:
            raise SlackAPIError("team.info", "no team domain in response")
        return domain

    def set_status(self, text: str, emoji: str = "", expiration: int = 0) -> None:
        self._call(
            "users.profile.set",
            json={
                "profile": {
                    "status_text": text,
                    "status_emoji": emoji,
                    "status_expiration": expiration,
                }
            },
        )

    def set_snooze(self, minutes: int) -> None:
        self._call("dnd.setSnooze", data={"num_minutes": minutes})

    def end_snooze(self) -> None:
        """End snooze; not being snoozed is fine."""
        try:
            self._call("dnd.endSnooze")
        except SlackAPIError as e:
            if e.error != "snooze_not_active":
                raise
