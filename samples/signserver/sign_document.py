#!/usr/bin/env python3
"""
SignServer signing sample: sends a file to a worker and saves the result.

Usage: sign_document.py <infile> [worker]   (worker defaults to PlainSigner)
"""

import sys

from ejbcarest import DirectoryCertificateStore, EjbcaRestError, select_client_certificate
from ejbcarest import config, signserver


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    infile = sys.argv[1]
    worker = sys.argv[2] if len(sys.argv) > 2 else "PlainSigner"

    try:
        cert = select_client_certificate(DirectoryCertificateStore(config.get_cert_dir()))
        with open(infile, "rb") as f:
            data = f.read()
        out = signserver.process(config.get_signserver_host(), cert, worker, data,
                                 infile + ".signed", verify_ssl=config.get_verify())
    except (EjbcaRestError, RuntimeError, OSError) as e:
        print(f"[Sign] ❌ {e}")
        sys.exit(1)
    print(f"[Sign] ✅ {worker} output written to {out}")


if __name__ == "__main__":
    main()
