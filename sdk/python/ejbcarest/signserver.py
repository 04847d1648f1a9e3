# SPDX-License-Identifier: Apache-2.0
import base64
import logging
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import quote

from . import http
from .certstore import ClientCertificate
from .errors import RequestFailed

logger = logging.getLogger("ejbcarest.signserver")

WORKERS_PATH = "/signserver/rest/v1/workers"
CSRF_HEADER = {"X-Keyfactor-Requested-With": "XMLHttpRequest"}


def process(host: str, cert: ClientCertificate, worker: str, data: bytes, out_path: str,
            metadata: Optional[Dict[str, str]] = None,
            verify_ssl: Union[bool, str] = True, timeout: float = 30) -> str:
    """
    Send ``data`` to a SignServer worker and write the processed result.

    ``worker`` is the worker name or numeric id. Request and response payloads
    travel base64 encoded.
    """
    body = {
        "data": base64.b64encode(data).decode("ascii"),
        "encoding": "BASE64",
    }
    if metadata:
        body["metaData"] = metadata
    path = f"{WORKERS_PATH}/{quote(str(worker), safe='')}/process"
    resp = http.request("POST", host, path, cert=cert.requests_cert,
                        headers=dict(CSRF_HEADER), json_body=body,
                        timeout=timeout, verify_ssl=verify_ssl)
    try:
        result = resp.json()
    except ValueError as e:
        raise RequestFailed(f"Unexpected non-JSON response from worker {worker}: {e}",
                            status_code=resp.status_code) from e
    if not isinstance(result, dict) or "data" not in result:
        raise RequestFailed(f"Worker {worker} returned no data", status_code=resp.status_code)
    try:
        signed = base64.b64decode(result["data"], validate=True)
    except (TypeError, ValueError) as e:
        raise RequestFailed(f"Worker {worker} returned data that is not base64: {e}",
                            status_code=resp.status_code) from e

    out = Path(out_path)
    out.write_bytes(signed)
    logger.info("Worker %s processed %d byte(s), archiveId=%s, output=%s",
                worker, len(data), result.get("archiveId"), out)
    return str(out)
