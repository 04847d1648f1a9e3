# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Optional, Union, Tuple

import requests

from .errors import RequestFailed

logger = logging.getLogger("ejbcarest.http")

_BODY_EXCERPT = 500


def _join(base: str, path: str) -> str:
    if base.endswith("/") and path.startswith("/"):
        return base[:-1] + path
    if not base.endswith("/") and not path.startswith("/"):
        return base + "/" + path
    return base + path


def normalize_host(host: str) -> str:
    host = (host or "").strip()
    if not host:
        raise ValueError("host must not be empty")
    if "://" not in host:
        host = "https://" + host
    return host.rstrip("/")


def request(
    method: str,
    base_url: str,
    path: str,
    cert: Optional[Union[str, Tuple[str, str]]] = None,
    headers=None,
    query: Optional[str] = None,
    json_body=None,
    timeout: float = 30,
    verify_ssl: Union[bool, str] = True,
    stream: bool = False,
) -> requests.Response:
    """Issue a single request and return the raw response.

    ``query`` is an already encoded query string. Transport failures and
    non-2xx responses raise ``RequestFailed``; there is no retry.
    """
    url = _join(normalize_host(base_url), path)
    if query:
        url = url + ("&" if "?" in url else "?") + query
    headers = headers or {}
    logger.debug("%s %s", method.upper(), url)
    try:
        r = requests.request(
            method.upper(),
            url,
            headers=headers,
            json=json_body,
            cert=cert,
            timeout=timeout,
            verify=verify_ssl,
            stream=stream,
        )
    except requests.RequestException as e:
        raise RequestFailed(f"HTTP error: {e}") from e

    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        body = ""
        try:
            body = (r.text or "").strip()
        except Exception:
            body = ""
        msg = f"HTTP error: {e}"
        if body:
            msg += f" | Response body: {body[:_BODY_EXCERPT]}"
        raise RequestFailed(msg, status_code=r.status_code, body=body) from e
    return r
