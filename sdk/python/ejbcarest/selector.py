# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Callable, List, Optional

from .certstore import CertificateStore, ClientCertificate
from .errors import InvalidSelection, NoCandidateCertificate

logger = logging.getLogger("ejbcarest.selector")

Chooser = Callable[[List[ClientCertificate]], ClientCertificate]


def format_candidates(candidates: List[ClientCertificate]) -> str:
    headers = ["#", "Name", "Issuer", "Serial"]
    rows = [
        [str(i), c.friendly_name, c.issuer_common_name, c.serial_number]
        for i, c in enumerate(candidates, start=1)
    ]
    widths = [max([len(h)] + [len(r[n]) for r in rows]) for n, h in enumerate(headers)]
    lines = ["  ".join(h.ljust(widths[n]) for n, h in enumerate(headers))]
    lines.append("-" * len(lines[0]))
    for r in rows:
        lines.append("  ".join(v.ljust(widths[n]) for n, v in enumerate(r)))
    return "\n".join(lines)


def parse_selection(raw: str, count: int) -> int:
    """Turn operator input into a zero-based index, or raise InvalidSelection."""
    raw = (raw or "").strip()
    try:
        choice = int(raw)
    except ValueError:
        raise InvalidSelection(f"'{raw}' is not a number")
    if not 1 <= choice <= count:
        raise InvalidSelection(f"Choose a number between 1 and {count}")
    return choice - 1


def prompt_for_certificate(candidates: List[ClientCertificate],
                           input_func: Callable[[str], str] = input,
                           output: Callable[[str], None] = print) -> ClientCertificate:
    """Show the candidates and block until the operator picks one."""
    output(format_candidates(candidates))
    while True:
        try:
            return candidates[parse_selection(input_func("Select a certificate: "), len(candidates))]
        except InvalidSelection as e:
            output(f"[warn] {e}")


def select_client_certificate(store: CertificateStore,
                              serial_number: Optional[str] = None,
                              chooser: Chooser = prompt_for_certificate) -> ClientCertificate:
    """
    Pick the client-authentication certificate to use for one invocation.

    A serial number that matches exactly one certificate with client-auth
    usage wins outright. Otherwise a single client-auth candidate is returned
    as is, several go to ``chooser``, and none raises NoCandidateCertificate.
    """
    all_certs = store.list_certificates()

    if serial_number:
        matches = [c for c in all_certs if c.matches_serial(serial_number)]
        if len(matches) == 1 and matches[0].has_client_auth:
            logger.debug("Serial %s matched %s", serial_number, matches[0].friendly_name)
            return matches[0]
        logger.warning("Serial %s did not match a single client-auth certificate (%d match(es))",
                       serial_number, len(matches))

    candidates = [c for c in all_certs if c.has_client_auth]
    if not candidates:
        raise NoCandidateCertificate("No certificate with Client Authentication usage was found")
    if len(candidates) == 1:
        return candidates[0]
    return chooser(candidates)
