# SPDX-License-Identifier: Apache-2.0
import os
from pathlib import Path
from typing import Optional, Union

DEFAULT_CERT_DIR = Path.home() / ".ejbca" / "certs"
DEFAULT_TIMEOUT = 30.0


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _truthy(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "")


def get_host(explicit: Optional[str] = None) -> str:
    """
    Resolution order:
      1) Explicit host argument
      2) EJBCA_HOST
    """
    host = explicit or _env("EJBCA_HOST")
    if not host:
        raise RuntimeError("Missing EJBCA host. Pass --host or set EJBCA_HOST.")
    return host


def get_signserver_host(explicit: Optional[str] = None) -> str:
    host = explicit or _env("SIGNSERVER_HOST") or _env("EJBCA_HOST")
    if not host:
        raise RuntimeError("Missing SignServer host. Pass --host or set SIGNSERVER_HOST.")
    return host


def get_cert_dir(explicit: Optional[str] = None) -> Path:
    raw = explicit or _env("EJBCA_CERT_DIR")
    return Path(raw).expanduser() if raw else DEFAULT_CERT_DIR


def get_verify(insecure: bool = False) -> Union[bool, str]:
    """Value for the ``verify=`` argument of requests.

    A CA bundle path in EJBCA_CA_BUNDLE wins over the on/off switch.
    """
    if insecure:
        return False
    bundle = _env("EJBCA_CA_BUNDLE", "").strip()
    if bundle:
        return bundle
    return _truthy("EJBCA_VERIFY_SSL", "1")


def get_timeout() -> float:
    raw = _env("EJBCA_TIMEOUT", "")
    try:
        return float(raw) if raw else DEFAULT_TIMEOUT
    except ValueError:
        raise RuntimeError(f"EJBCA_TIMEOUT must be a number of seconds, got {raw!r}")


def get_log_level() -> str:
    return (_env("EJBCA_LOG_LEVEL", "WARNING") or "WARNING").upper()
