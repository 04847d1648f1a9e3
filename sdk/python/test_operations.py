# SPDX-License-Identifier: Apache-2.0
import base64
import datetime

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ejbcarest import ca, enroll, signserver
from ejbcarest.certstore import CLIENT_AUTH_OID, ClientCertificate
from ejbcarest.errors import RequestFailed

CERT = ClientCertificate(
    serial_number="01",
    friendly_name="ra-admin",
    issuer_common_name="ManagementCA",
    subject="CN=RA Admin",
    cert_path="/certs/ra.pem",
    key_path="/certs/ra.pem",
    extended_key_usages=(CLIENT_AUTH_OID,),
)


class _Resp:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = str(self._payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


def _issued_der_b64(csr_pem: str) -> str:
    csr = x509.load_pem_x509_csr(csr_pem.encode())
    ca_key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "ManagementCA")]))
        .public_key(csr.public_key())
        .serial_number(4242)
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(ca_key, hashes.SHA256())
    )
    return base64.b64encode(cert.public_bytes(serialization.Encoding.DER)).decode()


def test_list_cas(monkeypatch):
    payload = {"certificate_authorities": [{"id": 1, "name": "ManagementCA"}]}
    calls = []

    def _fake(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return _Resp(200, payload)

    monkeypatch.setattr(ca.http.requests, "request", _fake)
    cas = ca.list_cas("https://ejbca", CERT)
    assert cas == [{"id": 1, "name": "ManagementCA"}]
    assert calls[0][1] == "https://ejbca/ejbca-rest-api/v1/ca"
    assert calls[0][2]["cert"] == "/certs/ra.pem"


def test_generate_csr_and_enroll(monkeypatch, tmp_path):
    key_path = tmp_path / "device.key"
    csr_pem = enroll.generate_csr("device01", str(key_path))
    assert key_path.stat().st_mode & 0o777 == 0o600
    assert x509.load_pem_x509_csr(csr_pem.encode()).subject.rfc4514_string() == "CN=device01"

    sent = {}

    def _fake(method, url, **kwargs):
        sent.update(kwargs, method=method, url=url)
        return _Resp(200, {"certificate": _issued_der_b64(csr_pem), "serial_number": "1092",
                           "certificate_chain": []})

    monkeypatch.setattr(enroll.http.requests, "request", _fake)
    req = enroll.EnrollRequest(csr_pem, "ENDUSER", "EMPTY", "ManagementCA", "device01", "foo123")
    out = enroll.pkcs10_enroll("https://ejbca", CERT, req, str(tmp_path / "certs" / "device01.pem"))

    assert sent["method"] == "POST"
    assert sent["url"].endswith("/ejbca-rest-api/v1/certificate/pkcs10enroll")
    assert sent["json"]["certificate_authority_name"] == "ManagementCA"
    assert sent["json"]["include_chain"] is True
    assert sent["headers"]["X-Keyfactor-Requested-With"] == "XMLHttpRequest"
    issued = x509.load_pem_x509_certificate(open(out, "rb").read())
    assert issued.serial_number == 4242


def test_enroll_rejection_writes_nothing(monkeypatch, tmp_path):
    monkeypatch.setattr(enroll.http.requests, "request",
                        lambda *a, **k: _Resp(400, {"error_message": "Wrong username or password"}))
    req = enroll.EnrollRequest("csr", "ENDUSER", "EMPTY", "ManagementCA", "device01", "bad")
    with pytest.raises(RequestFailed) as exc:
        enroll.pkcs10_enroll("https://ejbca", CERT, req, str(tmp_path / "out.pem"))
    assert exc.value.status_code == 400
    assert not (tmp_path / "out.pem").exists()


def test_signserver_process(monkeypatch, tmp_path):
    sent = {}

    def _fake(method, url, **kwargs):
        sent.update(kwargs, url=url)
        return _Resp(200, {"archiveId": "abc", "data": base64.b64encode(b"SIGNED").decode()})

    monkeypatch.setattr(signserver.http.requests, "request", _fake)
    out = signserver.process("https://signserver", CERT, "Plain Signer", b"hello",
                             str(tmp_path / "doc.sig"), metadata={"REQUEST_METADATA.x": "1"})

    assert sent["url"] == "https://signserver/signserver/rest/v1/workers/Plain%20Signer/process"
    assert base64.b64decode(sent["json"]["data"]) == b"hello"
    assert sent["json"]["encoding"] == "BASE64"
    assert sent["json"]["metaData"] == {"REQUEST_METADATA.x": "1"}
    assert open(out, "rb").read() == b"SIGNED"


def test_signserver_missing_data(monkeypatch, tmp_path):
    monkeypatch.setattr(signserver.http.requests, "request", lambda *a, **k: _Resp(200, {"archiveId": "x"}))
    with pytest.raises(RequestFailed):
        signserver.process("https://signserver", CERT, "1", b"x", str(tmp_path / "o"))


class _HtmlResp(_Resp):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def _enroll_request():
    return enroll.EnrollRequest("csr", "ENDUSER", "EMPTY", "ManagementCA", "device01", "foo123")


def test_enroll_non_json_reply_is_request_failed(monkeypatch, tmp_path):
    monkeypatch.setattr(enroll.http.requests, "request", lambda *a, **k: _HtmlResp(200))
    with pytest.raises(RequestFailed) as exc:
        enroll.pkcs10_enroll("https://ejbca", CERT, _enroll_request(), str(tmp_path / "out.pem"))
    assert exc.value.status_code == 200
    assert not (tmp_path / "out.pem").exists()


def test_enroll_unreadable_certificate_is_request_failed(monkeypatch, tmp_path):
    payload = {"certificate": base64.b64encode(b"not a certificate").decode()}
    monkeypatch.setattr(enroll.http.requests, "request", lambda *a, **k: _Resp(200, payload))
    with pytest.raises(RequestFailed):
        enroll.pkcs10_enroll("https://ejbca", CERT, _enroll_request(), str(tmp_path / "out.pem"))
    assert not (tmp_path / "out.pem").exists()


def test_signserver_non_json_reply_is_request_failed(monkeypatch, tmp_path):
    monkeypatch.setattr(signserver.http.requests, "request", lambda *a, **k: _HtmlResp(200))
    with pytest.raises(RequestFailed):
        signserver.process("https://signserver", CERT, "PlainSigner", b"x", str(tmp_path / "o"))
    assert not (tmp_path / "o").exists()


def test_signserver_bad_base64_is_request_failed(monkeypatch, tmp_path):
    monkeypatch.setattr(signserver.http.requests, "request",
                        lambda *a, **k: _Resp(200, {"data": "***not base64***"}))
    with pytest.raises(RequestFailed):
        signserver.process("https://signserver", CERT, "PlainSigner", b"x", str(tmp_path / "o"))
    assert not (tmp_path / "o").exists()
