# SPDX-License-Identifier: Apache-2.0
# ejbcarest/enroll.py
from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from . import http
from .certstore import ClientCertificate
from .errors import RequestFailed

logger = logging.getLogger("ejbcarest.enroll")

PKCS10_ENROLL_PATH = "/ejbca-rest-api/v1/certificate/pkcs10enroll"
CSRF_HEADER = {"X-Keyfactor-Requested-With": "XMLHttpRequest"}


@dataclass
class EnrollRequest:
    csr_pem: str
    certificate_profile: str
    end_entity_profile: str
    ca_name: str
    username: str
    password: str
    include_chain: bool = True

    def body(self) -> Dict[str, Any]:
        return {
            "certificate_request": self.csr_pem,
            "certificate_profile_name": self.certificate_profile,
            "end_entity_profile_name": self.end_entity_profile,
            "certificate_authority_name": self.ca_name,
            "username": self.username,
            "password": self.password,
            "include_chain": self.include_chain,
        }


def generate_csr(common_name: str, key_path: str) -> str:
    """Create an EC P-256 key at ``key_path`` and return a PEM CSR for it."""
    key = ec.generate_private_key(ec.SECP256R1())
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(key_pem)

    csr = (
        x509.CertificateSigningRequestBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)]))
        .sign(key, hashes.SHA256())
    )
    return csr.public_bytes(serialization.Encoding.PEM).decode("ascii")


def _der_b64_to_pem(b64: str) -> bytes:
    cert = x509.load_der_x509_certificate(base64.b64decode(b64))
    return cert.public_bytes(serialization.Encoding.PEM)


def pkcs10_enroll(host: str, cert: ClientCertificate, req: EnrollRequest, out_path: str,
                  verify_ssl: Union[bool, str] = True, timeout: float = 30) -> str:
    """Enroll a CSR and write the issued certificate (plus chain, if returned) as PEM."""
    resp = http.request("POST", host, PKCS10_ENROLL_PATH, cert=cert.requests_cert,
                        headers=dict(CSRF_HEADER), json_body=req.body(),
                        timeout=timeout, verify_ssl=verify_ssl)
    try:
        data = resp.json()
    except ValueError as e:
        raise RequestFailed(f"Unexpected non-JSON response from {PKCS10_ENROLL_PATH}: {e}",
                            status_code=resp.status_code) from e
    issued = data.get("certificate") if isinstance(data, dict) else None
    if not issued:
        raise RequestFailed("Enrollment succeeded but no certificate was returned",
                            status_code=resp.status_code)

    chain: List[str] = data.get("certificate_chain") or []
    try:
        pem = _der_b64_to_pem(issued) + b"".join(_der_b64_to_pem(c) for c in chain)
    except (TypeError, ValueError) as e:
        raise RequestFailed(f"Enrollment returned an unreadable certificate: {e}",
                            status_code=resp.status_code) from e
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(pem)
    logger.info("Issued certificate serial=%s written to %s", data.get("serial_number"), out)
    return str(out)
