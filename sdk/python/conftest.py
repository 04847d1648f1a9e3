# SPDX-License-Identifier: Apache-2.0
import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID


def _name(cn):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])


@pytest.fixture
def make_cert(tmp_path):
    """Write a throw-away certificate (and key) into tmp_path, return the cert path."""

    def _make(stem, serial=0x1A2B, client_auth=True, key="sibling", issuer="Test Issuing CA"):
        k = ec.generate_private_key(ec.SECP256R1())
        now = datetime.datetime.now(datetime.timezone.utc)
        builder = (
            x509.CertificateBuilder()
            .subject_name(_name(stem))
            .issuer_name(_name(issuer))
            .public_key(k.public_key())
            .serial_number(serial)
            .not_valid_before(now - datetime.timedelta(days=1))
            .not_valid_after(now + datetime.timedelta(days=30))
        )
        usages = [ExtendedKeyUsageOID.CLIENT_AUTH] if client_auth else [ExtendedKeyUsageOID.SERVER_AUTH]
        builder = builder.add_extension(x509.ExtendedKeyUsage(usages), critical=False)
        cert = builder.sign(k, hashes.SHA256())

        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
        key_pem = k.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        cert_path = tmp_path / f"{stem}.pem"
        if key == "inline":
            cert_path.write_bytes(cert_pem + key_pem)
        else:
            cert_path.write_bytes(cert_pem)
            if key == "sibling":
                (tmp_path / f"{stem}.key").write_bytes(key_pem)
        return cert_path

    return _make
