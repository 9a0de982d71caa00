# TLS material for the OAuth callback listener.
# Created: 2026-10-18
#
# Sources are tried in order and the first one that produces a pair wins:
#   1. cert.pem/key.pem the user placed in the config directory
#   2. a freshly generated self-signed pair (cached in the config directory)
#   3. the pair shipped inside the package
# If all of them come up empty the listener runs over plain HTTP.

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from importlib import resources
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from slackstatus.config import Settings, get_config_file_path
from slackstatus.errors import CertificateGenerationError

logger = logging.getLogger(__name__)

CERT_FILENAME = "cert.pem"
KEY_FILENAME = "key.pem"
CERT_VALIDITY_DAYS = 365
RSA_KEY_SIZE = 2048


@dataclass(frozen=True)
class TLSMaterial:
    """A PEM certificate and private key."""

    cert_pem: bytes
    key_pem: bytes
    source: str


# (config_dir, port) -> material or None to fall through
TLSStrategy = Callable[[Path, int], TLSMaterial | None]


def load_config_pair(config_dir: Path, port: int) -> TLSMaterial | None:
    """Use cert.pem/key.pem from the config directory when both are present.

    The pair is not validated here; a bad pair fails when the listener loads it.
    """
    cert_path = config_dir / CERT_FILENAME
    key_path = config_dir / KEY_FILENAME
    try:
        if not (cert_path.is_file() and key_path.is_file()):
            return None
        cert_pem = cert_path.read_bytes()
        key_pem = key_path.read_bytes()
    except OSError as e:
        logger.warning("Ignoring unreadable certificate in %s: %s", config_dir, e)
        return None

    if not cert_pem or not key_pem:
        return None
    return TLSMaterial(cert_pem=cert_pem, key_pem=key_pem, source=str(config_dir))


def _write_private(path: Path, data: bytes) -> None:
    # O_EXCL: a file that already exists belongs to the user
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, stat.S_IRUSR | stat.S_IWUSR)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
    os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)


def generate_self_signed(config_dir: Path, port: int) -> TLSMaterial:
    """Create a self-signed localhost certificate and save it for reuse.

    Existing cert.pem or key.pem files are never replaced, even when only one
    of the two is present.

    Raises:
        CertificateGenerationError: If either file already exists, or if
            generation or writing fails.
    """
    cert_path = config_dir / CERT_FILENAME
    key_path = config_dir / KEY_FILENAME
    for path in (cert_path, key_path):
        if path.exists():
            raise CertificateGenerationError(
                f"not generating a certificate: {path} already exists"
            )

    try:
        key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, f"localhost:{port}")])
        now = datetime.now(UTC)
        cert = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + timedelta(days=CERT_VALIDITY_DAYS))
            .add_extension(x509.SubjectAlternativeName([x509.DNSName("localhost")]), critical=False)
            .sign(key, hashes.SHA256())
        )
        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
        key_pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )

        _write_private(key_path, key_pem)
        try:
            _write_private(cert_path, cert_pem)
        except OSError:
            key_path.unlink(missing_ok=True)
            raise
    except Exception as e:
        raise CertificateGenerationError(f"could not generate self-signed certificate: {e}") from e

    logger.info("Generated self-signed certificate in %s", config_dir)
    return TLSMaterial(cert_pem=cert_pem, key_pem=key_pem, source="generated")


def load_embedded_pair(config_dir: Path, port: int) -> TLSMaterial | None:
    """Fall back to the certificate bundled with the package."""
    certs = resources.files("slackstatus.auth") / "certs"
    try:
        cert_pem = (certs / CERT_FILENAME).read_bytes()
        key_pem = (certs / KEY_FILENAME).read_bytes()
    except OSError as e:
        logger.warning("Bundled certificate unavailable: %s", e)
        return None
    if not cert_pem or not key_pem:
        return None
    return TLSMaterial(cert_pem=cert_pem, key_pem=key_pem, source="embedded")


class CertificateResolver:
    """Pick TLS material for the callback listener.

    ``resolve()`` returns None when the listener should use plain HTTP.
    """

    def __init__(
        self,
        config_dir: Path,
        port: int,
        strategies: list[TLSStrategy] | None = None,
    ) -> None:
        self.config_dir = config_dir
        self.port = port
        if strategies is None:
            strategies = [load_config_pair, generate_self_signed, load_embedded_pair]
        self.strategies = strategies

    @classmethod
    def from_settings(cls, settings: Settings) -> CertificateResolver:
        """Resolver over the configured directory and listen port.

        cert.pem and key.pem are located like any other config file, so a
        pair left in the legacy config directory is moved over first.
        """
        cert_path = get_config_file_path(CERT_FILENAME, settings)
        get_config_file_path(KEY_FILENAME, settings)
        return cls(cert_path.parent, settings.listen_port)

    def resolve(self) -> TLSMaterial | None:
        for strategy in self.strategies:
            try:
                material = strategy(self.config_dir, self.port)
            except CertificateGenerationError as e:
                logger.warning("%s", e)
                continue
            if material is not None:
                logger.debug("Using TLS material from %s", material.source)
                return material

        logger.warning("No TLS material available, callback will use plain HTTP")
        return None
