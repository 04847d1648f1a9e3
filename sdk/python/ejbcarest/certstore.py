# SPDX-License-Identifier: Apache-2.0
# ejbcarest/certstore.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

logger = logging.getLogger("ejbcarest.certstore")

CLIENT_AUTH_OID = ExtendedKeyUsageOID.CLIENT_AUTH.dotted_string  # 1.3.6.1.5.5.7.3.2
CERT_SUFFIXES = (".pem", ".crt", ".cer")
KEY_SUFFIX = ".key"


def normalize_serial(serial: str) -> str:
    s = "".join(ch for ch in (serial or "") if ch not in ": \t").upper()
    return s.lstrip("0") or "0"


@dataclass(frozen=True)
class ClientCertificate:
    """A client identity on disk: certificate plus the private key that goes with it."""

    serial_number: str
    friendly_name: str
    issuer_common_name: str
    subject: str
    cert_path: str
    key_path: str
    extended_key_usages: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_client_auth(self) -> bool:
        return CLIENT_AUTH_OID in self.extended_key_usages

    @property
    def requests_cert(self) -> Union[str, Tuple[str, str]]:
        if self.key_path == self.cert_path:
            return self.cert_path
        return (self.cert_path, self.key_path)

    def matches_serial(self, serial: str) -> bool:
        return normalize_serial(self.serial_number) == normalize_serial(serial)


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    return str(attrs[0].value) if attrs else name.rfc4514_string()


def _extended_key_usages(cert: x509.Certificate) -> Tuple[str, ...]:
    try:
        ext = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage)
    except x509.ExtensionNotFound:
        return ()
    return tuple(oid.dotted_string for oid in ext.value)


def _has_private_key(pem: bytes) -> bool:
    return b"PRIVATE KEY-----" in pem


def load_client_certificate(cert_path: str, key_path: Optional[str] = None,
                            friendly_name: Optional[str] = None) -> ClientCertificate:
    """Build a handle from a PEM certificate and its key.

    When ``key_path`` is omitted the key must live in the certificate file
    itself or in a sibling ``<stem>.key``.
    """
    path = Path(cert_path)
    pem = path.read_bytes()
    cert = x509.load_pem_x509_certificate(pem)

    if key_path is None:
        sibling = path.with_suffix(KEY_SUFFIX)
        if _has_private_key(pem):
            key_path = str(path)
        elif sibling.exists():
            key_path = str(sibling)
        else:
            raise FileNotFoundError(f"No private key found for {path}")

    return ClientCertificate(
        serial_number=format(cert.serial_number, "X"),
        friendly_name=friendly_name or path.stem,
        issuer_common_name=_common_name(cert.issuer),
        subject=cert.subject.rfc4514_string(),
        cert_path=str(path),
        key_path=str(key_path),
        extended_key_usages=_extended_key_usages(cert),
    )


class CertificateStore:
    """Source of client identities. Subclasses implement ``list_certificates``."""

    def list_certificates(self) -> List[ClientCertificate]:
        raise NotImplementedError

    def list_client_auth_certificates(self) -> List[ClientCertificate]:
        return [c for c in self.list_certificates() if c.has_client_auth]

    def find_by_serial(self, serial: str) -> List[ClientCertificate]:
        return [c for c in self.list_certificates() if c.matches_serial(serial)]


class StaticCertificateStore(CertificateStore):
    def __init__(self, certificates: List[ClientCertificate]):
        self._certificates = list(certificates)

    def list_certificates(self) -> List[ClientCertificate]:
        return list(self._certificates)


class DirectoryCertificateStore(CertificateStore):
    """Personal store backed by a directory of PEM files.

    Certificates without a reachable private key are not identities and are
    left out. Files that fail to parse are skipped with a warning.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def list_certificates(self) -> List[ClientCertificate]:
        if not self.path.is_dir():
            logger.warning("Certificate directory %s does not exist", self.path)
            return []
        found: List[ClientCertificate] = []
        for entry in sorted(self.path.iterdir()):
            if not entry.is_file() or entry.suffix.lower() not in CERT_SUFFIXES:
                continue
            try:
                found.append(load_client_certificate(str(entry)))
            except FileNotFoundError:
                logger.debug("Skipping %s: no private key", entry)
            except ValueError as e:
                logger.warning("Skipping %s: not a PEM certificate (%s)", entry, e)
        logger.debug("Loaded %d certificate(s) from %s", len(found), self.path)
        return found
