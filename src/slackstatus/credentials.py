# Credential Store — one Slack access token per workspace domain, plus a
# default domain, persisted as JSON in the config directory.
# Created: 2026-10-18
#
# Every mutation is a full read-modify-write of the document, written to a
# temp file and renamed into place with mode 0600. There is no locking:
# two concurrent invocations can lose an update.

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from slackstatus.config import Settings, get_config_file_path
from slackstatus.errors import ConfigIOError, UnknownDomainError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"
# Single bare token written by releases that predate multiple domains
LEGACY_TOKEN_FILENAME = "token"


@dataclass
class CredentialDocument:
    """The persisted credential document."""

    default_domain: str = ""
    domain_tokens: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict:
        # Field names are part of the on-disk format
        return {"DefaultDomain": self.default_domain, "DomainTokens": self.domain_tokens}

    @classmethod
    def from_json(cls, data: object) -> CredentialDocument:
        if not isinstance(data, dict):
            raise ValueError("config document must be a JSON object")

        default_domain = data.get("DefaultDomain") or ""
        domain_tokens = data.get("DomainTokens") or {}
        if not isinstance(default_domain, str):
            raise ValueError("DefaultDomain must be a string")
        if not isinstance(domain_tokens, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in domain_tokens.items()
        ):
            raise ValueError("DomainTokens must map strings to strings")

        return cls(default_domain=default_domain, domain_tokens=dict(domain_tokens))


class CredentialStore:
    """File-backed domain → access token store.

    Paths are resolved lazily so that constructing a store never touches the
    filesystem; legacy files are migrated on first access.
    """

    def __init__(
        self,
        path: Path | None = None,
        legacy_token_path: Path | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._path = path
        self._legacy_token_path = legacy_token_path
        self._settings = settings

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = get_config_file_path(CONFIG_FILENAME, self._settings)
        return self._path

    @property
    def legacy_token_path(self) -> Path:
        if self._legacy_token_path is None:
            self._legacy_token_path = get_config_file_path(LEGACY_TOKEN_FILENAME, self._settings)
        return self._legacy_token_path

    def read_all(self) -> CredentialDocument:
        """Load the document, or an empty one if nothing has been saved yet."""
        path = self.path
        if not path.exists():
            return CredentialDocument()

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigIOError(f"error reading config from {path}: {e}") from e

        try:
            return CredentialDocument.from_json(json.loads(content))
        except ValueError as e:
            raise ConfigIOError(f"failed parsing json from config file {path}: {e}") from e

    def write_all(self, document: CredentialDocument) -> None:
        """Atomically replace the document on disk."""
        path = self.path
        contents = json.dumps(document.to_json(), indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(contents)
            os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigIOError(f"error writing config to {path}: {e}") from e

    def get_token(self, domain: str) -> str:
        """Return the token stored for ``domain``."""
        document = self.read_all()
        try:
            return document.domain_tokens[domain]
        except KeyError:
            raise UnknownDomainError(domain) from None

    def get_default_token(self) -> str:
        """Return the token for the default domain.

        When no domain has ever been saved, a bare token left behind in the
        legacy ``token`` file is used instead.
        """
        document = self.read_all()
        if not document.domain_tokens:
            legacy = self._read_legacy_token()
            if legacy:
                return legacy

        if not document.default_domain:
            raise UnknownDomainError()
        try:
            return document.domain_tokens[document.default_domain]
        except KeyError:
            raise UnknownDomainError(document.default_domain) from None

    def save_login(self, domain: str, access_token: str) -> None:
        """Store ``access_token`` for ``domain``; the first domain becomes default."""
        document = self.read_all()
        first = not document.domain_tokens
        document.domain_tokens[domain] = access_token
        if first:
            document.default_domain = domain
        self.write_all(document)
        logger.info("Saved login for %s", domain)

    def save_default_login(self, domain: str) -> None:
        """Make ``domain`` the default. It must already have a token."""
        document = self.read_all()
        if domain not in document.domain_tokens:
            raise UnknownDomainError(domain)
        document.default_domain = domain
        self.write_all(document)
        logger.info("Default domain set to %s", domain)

    def domains(self) -> list[str]:
        """List all domains with stored tokens."""
        return sorted(self.read_all().domain_tokens)

    def _read_legacy_token(self) -> str:
        path = self.legacy_token_path
        if not path.exists():
            return ""
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ConfigIOError(f"error reading access token from {path}: {e}") from e
