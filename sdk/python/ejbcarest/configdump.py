# SPDX-License-Identifier: Apache-2.0
"""EJBCA Configdump export over the REST API."""
from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import urlencode, quote

import requests
from tqdm import tqdm

from . import http
from .certstore import ClientCertificate
from .errors import CONFIGDUMP_HINT, EjbcaRestError, EndpointUnavailable, RequestFailed

logger = logging.getLogger("ejbcarest.configdump")

CONFIGDUMP_PATH = "/ejbca-rest-api/v1/configdump"
STATUS_PATH = CONFIGDUMP_PATH + "/status"
ZIP_PATH = CONFIGDUMP_PATH + "/configdump.zip"
DEFAULT_OUTFILE = "configdump"
_CHUNK = 64 * 1024


class ExportFormat(str, enum.Enum):
    JSON = "JSON"
    ZIP = "ZIP"

    @property
    def extension(self) -> str:
        return "." + self.value.lower()


@dataclass
class ExportRequest:
    host: str
    format: ExportFormat = ExportFormat.JSON
    ignore_errors: bool = False
    include_defaults: bool = False
    include_external_cas: bool = False
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    outfile: Optional[str] = None

    def __post_init__(self):
        if not (self.host or "").strip():
            raise ValueError("ExportRequest.host must not be empty")
        self.format = ExportFormat(str(getattr(self.format, "value", self.format)).upper())

    @property
    def output_path(self) -> str:
        return (self.outfile or DEFAULT_OUTFILE) + self.format.extension


@dataclass
class ExportResult:
    path: Optional[str] = None
    error: Optional[EjbcaRestError] = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.error is None


def _bool(v: bool) -> str:
    return "true" if v else "false"


def query_params(req: ExportRequest) -> List[Tuple[str, str]]:
    params = [
        ("ignoreerrors", _bool(req.ignore_errors)),
        ("defaults", _bool(req.include_defaults)),
        ("externalcas", _bool(req.include_external_cas)),
    ]
    if req.include:
        if req.exclude:
            logger.debug("Include list given, ignoring exclude list %s", req.exclude)
        params.append(("exclude", "*:*"))
        params.extend(("include", f"{item}:*") for item in req.include)
    elif req.exclude:
        params.extend(("exclude", f"{item}:*") for item in req.exclude)
    return params


def build_query(req: ExportRequest) -> str:
    return urlencode(query_params(req), quote_via=quote)


class ConfigdumpClient:
    def __init__(self, host: str, cert: ClientCertificate,
                 verify_ssl: Union[bool, str] = True, timeout: float = 30):
        self.host = http.normalize_host(host)
        self.cert = cert
        self.verify_ssl = verify_ssl
        self.timeout = timeout

    def _get(self, path: str, query: Optional[str] = None, headers=None, stream: bool = False):
        return http.request("GET", self.host, path, cert=self.cert.requests_cert,
                            headers=headers, query=query, timeout=self.timeout,
                            verify_ssl=self.verify_ssl, stream=stream)

    def check_status(self) -> None:
        try:
            self._get(STATUS_PATH)
        except RequestFailed as e:
            hint = CONFIGDUMP_HINT if e.status_code is not None else None
            raise EndpointUnavailable(
                f"Configdump endpoint at {self.host} is unavailable: {e}",
                status_code=e.status_code, hint=hint,
            ) from e
        logger.debug("Configdump status OK at %s", self.host)

    def fetch(self, req: ExportRequest) -> str:
        """Download the dump and stream it to ``req.output_path``."""
        query = build_query(req)
        if req.format is ExportFormat.ZIP:
            path, headers = ZIP_PATH, {"Content-Type": "application/zip"}
        else:
            path, headers = CONFIGDUMP_PATH, None

        out = Path(req.output_path)
        with self._get(path, query=query, headers=headers, stream=True) as resp:
            total = int(resp.headers.get("Content-Length") or 0) or None
            try:
                with open(out, "wb") as f, tqdm(total=total, unit="B", unit_scale=True,
                                                desc=out.name, disable=None) as bar:
                    for chunk in resp.iter_content(chunk_size=_CHUNK):
                        if chunk:
                            f.write(chunk)
                            bar.update(len(chunk))
            except (requests.RequestException, OSError) as e:
                if out.exists():
                    os.remove(out)
                raise RequestFailed(f"Failed to write configdump to {out}: {e}") from e
        logger.info("Wrote configdump to %s", out)
        return str(out)


def export_config(req: ExportRequest, cert: ClientCertificate,
                  verify_ssl: Union[bool, str] = True, timeout: float = 30) -> ExportResult:
    """Health-check the endpoint, then export. Failures come back in the result."""
    client = ConfigdumpClient(req.host, cert, verify_ssl=verify_ssl, timeout=timeout)
    try:
        client.check_status()
        return ExportResult(path=client.fetch(req))
    except EjbcaRestError as e:
        logger.error("Configdump export failed: %s", e)
        return ExportResult(error=e)
