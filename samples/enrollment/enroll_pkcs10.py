#!/usr/bin/env python3
"""
PKCS#10 enrollment sample.

Generates a fresh EC key + CSR for ENROLL_CN and enrolls it against
ENROLL_CA using the given certificate/end entity profiles. The end entity
(ENROLL_USERNAME / ENROLL_PASSWORD) must already exist in EJBCA.
"""

import os, sys
from pathlib import Path

from ejbcarest import DirectoryCertificateStore, EjbcaRestError, select_client_certificate
from ejbcarest import config
from ejbcarest.enroll import EnrollRequest, generate_csr, pkcs10_enroll

HERE = Path(__file__).resolve().parent


def main():
    cn = os.getenv("ENROLL_CN", "sample-device")
    try:
        host = config.get_host()
        cert = select_client_certificate(DirectoryCertificateStore(config.get_cert_dir()))
        csr = generate_csr(cn, str(HERE / f"{cn}.key"))
        req = EnrollRequest(
            csr_pem=csr,
            certificate_profile=os.getenv("ENROLL_CERT_PROFILE", "ENDUSER"),
            end_entity_profile=os.getenv("ENROLL_EE_PROFILE", "EMPTY"),
            ca_name=os.getenv("ENROLL_CA", "ManagementCA"),
            username=os.getenv("ENROLL_USERNAME", cn),
            password=os.getenv("ENROLL_PASSWORD", "foo123"),
        )
        out = pkcs10_enroll(host, cert, req, str(HERE / f"{cn}.pem"),
                            verify_ssl=config.get_verify())
    except (EjbcaRestError, RuntimeError) as e:
        print(f"[Enroll] ❌ {e}")
        sys.exit(1)
    print(f"[Enroll] ✅ Certificate for {cn} written to {out}")


if __name__ == "__main__":
    main()
