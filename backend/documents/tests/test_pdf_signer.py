from types import SimpleNamespace

import pytest
import requests

from documents.exceptions import SigningError
from documents.services import pdf_signer
from documents.services.pdf_signer import (
    HttpPdfSigner,
    LocalPdfSigner,
    build_pdf_signer,
    get_pdf_signer,
)


def response(status_code=200, content=b'%PDF-signed', content_type='application/pdf', text=''):
    return SimpleNamespace(
        status_code=status_code,
        content=content,
        text=text,
        headers={'Content-Type': content_type, 'X-Signer-Backend': 'hsm'},
    )


class TestHttpPdfSigner:

    def test_returns_signed_bytes(self, monkeypatch):
        sent = {}

        def fake_post(url, headers, files, timeout, allow_redirects):
            sent.update(url=url, headers=headers, files=files, timeout=timeout)
            return response()

        monkeypatch.setattr(pdf_signer.requests, 'post', fake_post)

        signed = HttpPdfSigner('https://signer.internal/sign', timeout=5).sign(b'%PDF-1.7')

        assert signed == b'%PDF-signed'
        assert sent['url'] == 'https://signer.internal/sign'
        assert sent['timeout'] == 5
        assert sent['files']['file'][1] == b'%PDF-1.7'
        assert sent['headers']['X-Correlation-ID'].startswith('docseal-')

    @pytest.mark.parametrize('bad_response', [
        response(status_code=502, text='bad gateway'),
        response(content_type='text/html'),
        response(content=b''),
    ])
    def test_bad_responses_raise(self, monkeypatch, bad_response):
        monkeypatch.setattr(pdf_signer.requests, 'post', lambda *args, **kwargs: bad_response)

        with pytest.raises(SigningError):
            HttpPdfSigner('https://signer.internal/sign').sign(b'%PDF-1.7')

    def test_transport_errors_raise(self, monkeypatch):
        def fail(*args, **kwargs):
            raise requests.exceptions.ConnectionError('refused')

        monkeypatch.setattr(pdf_signer.requests, 'post', fail)

        with pytest.raises(SigningError, match='correlation_id'):
            HttpPdfSigner('https://signer.internal/sign').sign(b'%PDF-1.7')

    def test_missing_url(self):
        with pytest.raises(SigningError):
            HttpPdfSigner('').sign(b'%PDF-1.7')


class TestLocalPdfSigner:

    def test_missing_key_path(self):
        with pytest.raises(SigningError):
            LocalPdfSigner('').sign(b'%PDF-1.7')

    def test_unreadable_key(self, tmp_path):
        bogus = tmp_path / 'key.p12'
        bogus.write_bytes(b'not a pkcs12 bundle')

        with pytest.raises(SigningError):
            LocalPdfSigner(str(bogus), passphrase='secret').sign(b'%PDF-1.7')


def test_build_local_signer():
    signer = build_pdf_signer({
        'SIGNING_TRANSPORT': 'local',
        'SIGNING_P12_PATH': '/keys/seal.p12',
        'SIGNING_TIMESTAMP_URL': '',
        'SIGNATURE_REASON': 'Sealed',
    })

    assert isinstance(signer, LocalPdfSigner)
    assert signer.p12_path == '/keys/seal.p12'
    assert signer.timestamp_url is None
    assert signer.reason == 'Sealed'


def test_build_http_signer():
    signer = build_pdf_signer({'SIGNING_TRANSPORT': 'http', 'SIGNING_HTTP_URL': 'https://s/sign'})

    assert isinstance(signer, HttpPdfSigner)
    assert signer.url == 'https://s/sign'


def test_unknown_transport():
    with pytest.raises(SigningError):
        build_pdf_signer({'SIGNING_TRANSPORT': 'carrier-pigeon'})


def test_signer_from_settings(settings):
    settings.DOCSEAL_SEALING = {'SIGNING_TRANSPORT': 'http', 'SIGNING_HTTP_URL': 'https://s/sign'}

    assert isinstance(get_pdf_signer(), HttpPdfSigner)
