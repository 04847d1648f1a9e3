#!/usr/bin/env python3
"""
Configdump export sample using the EJBCA REST SDK.

Workflow:
1. Pick a client-authentication certificate from EJBCA_CERT_DIR
   (EJBCA_CERT_SERIAL selects one directly, otherwise you are prompted).
2. Check that the REST Configdump protocol is enabled.
3. Export CAs only, then everything except key bindings and OCSP config,
   next to this script.
"""

import os, sys
from pathlib import Path

from ejbcarest import (
    DirectoryCertificateStore,
    EjbcaRestError,
    ExportFormat,
    ExportRequest,
    export_config,
    select_client_certificate,
)
from ejbcarest import config

HERE = Path(__file__).resolve().parent


def main():
    try:
        host = config.get_host()
        cert = select_client_certificate(
            DirectoryCertificateStore(config.get_cert_dir()),
            serial_number=os.getenv("EJBCA_CERT_SERIAL"),
        )
    except (EjbcaRestError, RuntimeError) as e:
        print(f"[Configdump] ❌ {e}")
        sys.exit(1)
    print(f"[Configdump] Using certificate '{cert.friendly_name}' (serial {cert.serial_number})")

    requests_to_run = [
        ExportRequest(host=host, format=ExportFormat.JSON, include=["CA"],
                      outfile=str(HERE / "configdump-cas")),
        ExportRequest(host=host, format=ExportFormat.ZIP, exclude=["KEYBINDING", "OCSPCONFIG"],
                      ignore_errors=True, outfile=str(HERE / "configdump")),
    ]
    for req in requests_to_run:
        result = export_config(req, cert, verify_ssl=config.get_verify())
        if not result.ok:
            print(f"[Configdump] ❌ {result.error}")
            sys.exit(2)
        print(f"[Configdump] ✅ Wrote {result.path}")


if __name__ == "__main__":
    main()
