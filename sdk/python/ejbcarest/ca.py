# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Any, Dict, List, Union

from . import http
from .certstore import ClientCertificate
from .errors import RequestFailed

logger = logging.getLogger("ejbcarest.ca")

CA_PATH = "/ejbca-rest-api/v1/ca"


def list_cas(host: str, cert: ClientCertificate,
             verify_ssl: Union[bool, str] = True, timeout: float = 30) -> List[Dict[str, Any]]:
    """Return the CAs the client certificate is authorized to see."""
    resp = http.request("GET", host, CA_PATH, cert=cert.requests_cert,
                        headers={"Accept": "application/json"},
                        timeout=timeout, verify_ssl=verify_ssl)
    try:
        data = resp.json()
    except ValueError as e:
        raise RequestFailed(f"Unexpected non-JSON response from {CA_PATH}: {e}",
                            status_code=resp.status_code) from e
    cas = data.get("certificate_authorities") or []
    logger.debug("Found %d CA(s)", len(cas))
    return cas
