"""
LDAPS certificate probe — days until the domain controller's TLS certificate
on the LDAPS port expires.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime, timezone
from typing import Optional

from cryptography.x509 import Certificate, load_der_x509_certificate

from .base import BaseProbe, ProbeError

logger = logging.getLogger("ad_health_engine.probes.certificate")


def days_remaining(certificate: Certificate, now: Optional[datetime] = None) -> float:
    """Whole days from now until the certificate's notAfter (negative once expired)."""
    now = now or datetime.now(timezone.utc)
    remaining = certificate.not_valid_after_utc - now
    return float(remaining.days)


class CertificateProbe(BaseProbe):
    name = "certificate_days_remaining"
    description = "Days until the LDAPS certificate expires"

    async def measure(self, host: str) -> float:
        host = self.safe_host(host)
        der = await self._fetch_certificate(host, self.config.ldaps_port)
        certificate = load_der_x509_certificate(der)
        logger.debug(f"[{self.name}] {host}: subject {certificate.subject.rfc4514_string()}")
        return days_remaining(certificate)

    async def _fetch_certificate(self, host: str, port: int) -> bytes:
        # Expiry is measured even for untrusted or mismatched certificates
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port, ssl=context),
                timeout=self.config.connect_timeout_seconds,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise ProbeError(f"TLS handshake with {host}:{port} failed: {e}") from e
        try:
            ssl_object = writer.get_extra_info("ssl_object")
            der = ssl_object.getpeercert(binary_form=True) if ssl_object else None
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
        if not der:
            raise ProbeError(f"{host}:{port} presented no certificate")
        return der
