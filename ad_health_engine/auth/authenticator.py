"""
Authentication module — Certificate-based app-only auth for Microsoft Graph.
Uses MSAL for token acquisition; only needed for the directory sync check.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Optional

from cryptography.hazmat.primitives.hashes import SHA1
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)
import msal

from ..config import CERT_PASSWORD_ENV, GRAPH_SCOPES, CertificateAuth

logger = logging.getLogger("ad_health_engine.auth")


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


def load_pfx_credential(path: str, password: str) -> dict[str, str]:
    """
    Load a base64-encoded PFX and return the MSAL client credential
    (thumbprint + PEM private key).
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            pfx_bytes = base64.b64decode(f.read().strip())
    except FileNotFoundError:
        raise AuthenticationError(f"Certificate file not found: {path}")
    except (OSError, ValueError) as e:
        raise AuthenticationError(f"Failed to read certificate {path}: {e}")

    try:
        private_key, certificate, _ = pkcs12.load_key_and_certificates(
            pfx_bytes, password.encode("utf-8") if password else None
        )
    except ValueError as e:
        raise AuthenticationError(f"Failed to load certificate: {e}")

    if private_key is None or certificate is None:
        raise AuthenticationError("PFX does not contain a private key and certificate")

    thumbprint = certificate.fingerprint(SHA1()).hex()
    logger.info(f"Certificate loaded. Thumbprint: {thumbprint}")
    return {
        "thumbprint": thumbprint,
        "private_key": private_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        ).decode("utf-8"),
    }


class Authenticator:
    """Acquires an app-only Graph token with a certificate credential."""

    def __init__(self, config: CertificateAuth):
        self.config = config
        self._access_token: Optional[str] = None

    async def acquire_token(self) -> str:
        password = self.config.certificate_password or os.environ.get(CERT_PASSWORD_ENV, "")
        credential = load_pfx_credential(self.config.certificate_path, password)

        app = msal.ConfidentialClientApplication(
            client_id=self.config.client_id,
            authority=f"https://login.microsoftonline.com/{self.config.tenant_id}",
            client_credential=credential,
        )
        result = app.acquire_token_for_client(scopes=GRAPH_SCOPES)

        if "access_token" in result:
            self._access_token = result["access_token"]
            logger.info("Certificate authentication successful.")
            return self._access_token
        error = result.get("error_description", result.get("error", "Unknown"))
        raise AuthenticationError(f"Certificate auth failed: {error}")

