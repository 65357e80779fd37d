"""
Cryptographic signing of sealed PDFs.

Two transports, selected by ``DOCSEAL_SEALING['SIGNING_TRANSPORT']``:

- ``local``: PKCS#12 bundle signed in-process with pyHanko, optionally
  timestamped by an RFC 3161 authority
- ``http``: the PDF is posted to a remote signing service that returns the
  signed bytes

Every failure surfaces as SigningError.
"""

import logging
import uuid
from io import BytesIO

import requests
from django.conf import settings
from pyhanko.pdf_utils.incremental_writer import IncrementalPdfFileWriter
from pyhanko.sign import signers
from pyhanko.sign.timestamps import HTTPTimeStamper

from ..exceptions import SigningError

logger = logging.getLogger(__name__)

SIGNATURE_FIELD_NAME = 'Signature1'


class LocalPdfSigner:
    """Sign with a PKCS#12 key through pyHanko (incremental update)."""

    def __init__(self, p12_path: str, passphrase: str = '', reason: str = None,
                 location: str = None, timestamp_url: str = None):
        self.p12_path = p12_path
        self.passphrase = passphrase
        self.reason = reason
        self.location = location
        self.timestamp_url = timestamp_url
        self._signer = None

    def _load_signer(self):
        if self._signer is not None:
            return self._signer

        if not self.p12_path:
            raise SigningError("SIGNING_P12_PATH is not set")

        try:
            self._signer = signers.SimpleSigner.load_pkcs12(
                self.p12_path,
                passphrase=self.passphrase.encode('utf-8') if self.passphrase else None,
            )
        except Exception as exc:
            raise SigningError(f"Failed to load PKCS#12 signing key: {exc}") from exc

        if self._signer is None:
            raise SigningError(f"Could not read a signing key from {self.p12_path}")

        return self._signer

    def sign(self, pdf_bytes: bytes) -> bytes:
        signer = self._load_signer()
        timestamper = HTTPTimeStamper(self.timestamp_url) if self.timestamp_url else None

        output = BytesIO()
        try:
            signers.sign_pdf(
                IncrementalPdfFileWriter(BytesIO(pdf_bytes)),
                signers.PdfSignatureMetadata(
                    field_name=SIGNATURE_FIELD_NAME,
                    reason=self.reason or None,
                    location=self.location or None,
                ),
                signer=signer,
                timestamper=timestamper,
                output=output,
            )
        except Exception as exc:
            raise SigningError(f"PDF signing failed: {exc}") from exc

        return output.getvalue()


class HttpPdfSigner:
    """Sign by posting the PDF to a remote signing service."""

    def __init__(self, url: str, timeout: int = 30):
        self.url = url
        self.timeout = timeout

    def sign(self, pdf_bytes: bytes) -> bytes:
        if not self.url:
            raise SigningError("SIGNING_HTTP_URL is not set")

        correlation_id = f"docseal-{uuid.uuid4()}"

        try:
            response = requests.post(
                self.url,
                headers={'X-Correlation-ID': correlation_id},
                files={'file': ('document.pdf', pdf_bytes, 'application/pdf')},
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            raise SigningError(
                f"Failed to call signing service (correlation_id={correlation_id}): {exc}"
            ) from exc

        if response.status_code != 200:
            raise SigningError(
                f"Signing service error (status={response.status_code}, "
                f"correlation_id={correlation_id}): {response.text[:200]}"
            )

        content_type = response.headers.get('Content-Type', '')
        if 'application/pdf' not in content_type:
            raise SigningError(
                f"Signing service returned non-PDF response "
                f"(content_type={content_type}, correlation_id={correlation_id})"
            )

        if not response.content:
            raise SigningError(
                f"Signing service returned empty response (correlation_id={correlation_id})"
            )

        logger.info(
            "Document signed remotely (correlation_id=%s, backend=%s)",
            correlation_id,
            response.headers.get('X-Signer-Backend', 'unknown'),
        )
        return response.content


def build_pdf_signer(config: dict):
    """Create the signer described by a DOCSEAL_SEALING style dict."""
    transport = config.get('SIGNING_TRANSPORT', 'local')

    if transport == 'local':
        return LocalPdfSigner(
            p12_path=config.get('SIGNING_P12_PATH', ''),
            passphrase=config.get('SIGNING_P12_PASSPHRASE', ''),
            reason=config.get('SIGNATURE_REASON'),
            location=config.get('SIGNATURE_LOCATION'),
            timestamp_url=config.get('SIGNING_TIMESTAMP_URL') or None,
        )
    if transport == 'http':
        return HttpPdfSigner(
            url=config.get('SIGNING_HTTP_URL', ''),
            timeout=config.get('SIGNING_HTTP_TIMEOUT', 30),
        )

    raise SigningError(f"Unknown signing transport: {transport}")


def get_pdf_signer():
    """Signer configured in settings."""
    return build_pdf_signer(settings.DOCSEAL_SEALING)
