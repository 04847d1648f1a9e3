# SPDX-License-Identifier: Apache-2.0
"""ejbca-rest CLI entrypoint."""
import argparse
import json
import logging
import sys
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

from . import config
from .ca import list_cas
from .certstore import DirectoryCertificateStore, load_client_certificate
from .configdump import ConfigdumpClient, ExportFormat, ExportRequest, export_config
from .enroll import EnrollRequest, generate_csr, pkcs10_enroll
from .errors import EndpointUnavailable
from .selector import select_client_certificate
from . import signserver

PACKAGE_NAME = "ejbca-rest-samples"
try:
    __version__ = version(PACKAGE_NAME)
except PackageNotFoundError:
    __version__ = "0.0.0"

logger = logging.getLogger("ejbcarest.cli")
logging.basicConfig(level=getattr(logging, config.get_log_level(), logging.WARNING))

# ---------------- Console ----------------
_COLORS = {"info": "\033[36m", "warn": "\033[33m", "error": "\033[31m"}
_RESET = "\033[0m"


def say(level: str, msg: str):
    stream = sys.stderr if level in ("warn", "error") else sys.stdout
    prefix = f"[{level}]"
    if stream.isatty():
        prefix = f"{_COLORS[level]}{prefix}{_RESET}"
    print(f"{prefix} {msg}", file=stream)


def print_table(items, headers):
    if not items:
        print("No items found.")
        return
    widths = {col: max(len(col), max(len(str(row.get(col, ""))) for row in items)) for col in headers}
    header_row = "  ".join(col.ljust(widths[col]) for col in headers)
    print(header_row)
    print("-" * len(header_row))
    for row in items:
        line = "  ".join(str(row.get(col, "")).ljust(widths[col]) for col in headers)
        print(line)

# ---------------- Utilities ----------------
def _client_cert(args):
    if getattr(args, "cert", None):
        return load_client_certificate(args.cert, args.key)
    store = DirectoryCertificateStore(config.get_cert_dir(args.cert_dir))
    return select_client_certificate(store, serial_number=args.serial)


def _verify(args):
    return config.get_verify(args.insecure)

# ---------------- Certificates ----------------
def do_certs_list(args):
    store = DirectoryCertificateStore(config.get_cert_dir(args.cert_dir))
    certs = store.list_certificates() if args.all else store.list_client_auth_certificates()
    rows = [
        {"name": c.friendly_name, "issuer": c.issuer_common_name,
         "serial": c.serial_number, "client_auth": "yes" if c.has_client_auth else "no"}
        for c in certs
    ]
    print_table(rows, headers=["name", "issuer", "serial", "client_auth"])
    return 0

# ---------------- Configdump ----------------
def do_configdump_status(args):
    client = ConfigdumpClient(config.get_host(args.host), _client_cert(args),
                              verify_ssl=_verify(args), timeout=config.get_timeout())
    try:
        client.check_status()
    except EndpointUnavailable as e:
        say("error", str(e))
        return 2
    say("info", f"Configdump is available at {client.host}")
    return 0


def do_configdump_export(args):
    req = ExportRequest(
        host=config.get_host(args.host),
        format=ExportFormat(args.format.upper()),
        ignore_errors=args.ignore_errors,
        include_defaults=args.defaults,
        include_external_cas=args.external_cas,
        include=args.include or [],
        exclude=args.exclude or [],
        outfile=args.outfile,
    )
    if req.include and req.exclude:
        say("warn", "--include given, --exclude is ignored")
    result = export_config(req, _client_cert(args), verify_ssl=_verify(args),
                           timeout=config.get_timeout())
    if not result.ok:
        say("error", str(result.error))
        return 2
    say("info", f"Configdump written to {result.path}")
    return 0

# ---------------- CA ----------------
def do_ca_list(args):
    cas = list_cas(config.get_host(args.host), _client_cert(args),
                   verify_ssl=_verify(args), timeout=config.get_timeout())
    if args.json:
        print(json.dumps(cas, indent=2))
    else:
        print_table(cas, headers=["id", "name", "subject_dn", "expiration_date"])
    return 0

# ---------------- Enrollment ----------------
def do_enroll_pkcs10(args):
    if args.csr:
        csr_pem = Path(args.csr).read_text()
    else:
        if not args.common_name:
            raise SystemExit("[error] --common-name is required when no --csr is given")
        csr_pem = generate_csr(args.common_name, args.key_out)
        say("info", f"Private key written to {args.key_out}")
    req = EnrollRequest(
        csr_pem=csr_pem,
        certificate_profile=args.certificate_profile,
        end_entity_profile=args.end_entity_profile,
        ca_name=args.ca,
        username=args.username,
        password=args.enrollment_code,
        include_chain=not args.no_chain,
    )
    path = pkcs10_enroll(config.get_host(args.host), _client_cert(args), req, args.out,
                         verify_ssl=_verify(args), timeout=config.get_timeout())
    say("info", f"Certificate written to {path}")
    return 0

# ---------------- SignServer ----------------
def _parse_meta(pairs):
    metadata = {}
    for kv in pairs or []:
        key, sep, value = kv.partition("=")
        if not sep or not key:
            raise SystemExit(f"[error] --meta expects KEY=VALUE, got {kv!r}")
        metadata[key] = value
    return metadata


def do_sign_process(args):
    data = Path(args.infile).read_bytes()
    metadata = _parse_meta(args.meta)
    path = signserver.process(config.get_signserver_host(args.host), _client_cert(args),
                              args.worker, data, args.out, metadata=metadata or None,
                              verify_ssl=_verify(args), timeout=config.get_timeout())
    say("info", f"Signed output written to {path}")
    return 0

# ---------------- Parser Builder ----------------
def build_parser():
    p = argparse.ArgumentParser(
        prog="ejbca-rest",
        description="EJBCA / SignServer REST samples – configdump, enrollment and signing over mTLS"
    )
    p.add_argument("--host", help="Server base URL (default from EJBCA_HOST / SIGNSERVER_HOST)")
    p.add_argument("--cert-dir", help="Directory of PEM client certificates (default from EJBCA_CERT_DIR)")
    p.add_argument("--serial", help="Serial number of the client certificate to use")
    p.add_argument("--cert", help="Explicit client certificate PEM (skips the store)")
    p.add_argument("--key", help="Private key for --cert (default: inside --cert or <stem>.key)")
    p.add_argument("--insecure", action="store_true", help="Do not verify the server certificate")
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # ---- Certificates
    certs = sub.add_parser("certs", help="Local client certificates")
    csub = certs.add_subparsers(dest="sub", required=True)
    c_list = csub.add_parser("list", help="List client-auth certificates in the store")
    c_list.add_argument("--all", action="store_true", help="Include certificates without client-auth usage")
    c_list.set_defaults(func=do_certs_list)

    # ---- Configdump
    cd = sub.add_parser("configdump", help="Configuration export")
    cdsub = cd.add_subparsers(dest="sub", required=True)

    cd_status = cdsub.add_parser("status", help="Check that the configdump endpoint is enabled")
    cd_status.set_defaults(func=do_configdump_status)

    cd_exp = cdsub.add_parser("export", help="Export the configuration to a file")
    cd_exp.add_argument("--format", choices=["json", "zip"], default="json")
    cd_exp.add_argument("--outfile", help="Output base path; extension is appended (default: configdump)")
    cd_exp.add_argument("--ignore-errors", action="store_true", help="Export even if items fail validation")
    cd_exp.add_argument("--defaults", action="store_true", help="Include default values")
    cd_exp.add_argument("--external-cas", action="store_true", help="Include external CAs")
    cd_exp.add_argument("--include", nargs="+", metavar="TYPE",
                        help="Only export these item types (e.g. CA KEYBINDING); overrides --exclude")
    cd_exp.add_argument("--exclude", nargs="+", metavar="TYPE", help="Item types to leave out (e.g. OCSPCONFIG)")
    cd_exp.set_defaults(func=do_configdump_export)

    # ---- CA
    ca = sub.add_parser("ca", help="Certificate authorities")
    casub = ca.add_subparsers(dest="sub", required=True)
    ca_list = casub.add_parser("list", help="List CAs")
    ca_list.add_argument("--json", action="store_true", help="Output raw JSON instead of table")
    ca_list.set_defaults(func=do_ca_list)

    # ---- Enrollment
    en = sub.add_parser("enroll", help="Certificate enrollment")
    ensub = en.add_subparsers(dest="sub", required=True)
    e10 = ensub.add_parser("pkcs10", help="Enroll a PKCS#10 request")
    e10.add_argument("--csr", help="Existing CSR (PEM); generated when omitted")
    e10.add_argument("--common-name", help="CN for a generated CSR")
    e10.add_argument("--key-out", default="enrolled.key", help="Where to write a generated key")
    e10.add_argument("--certificate-profile", required=True)
    e10.add_argument("--end-entity-profile", required=True)
    e10.add_argument("--ca", required=True, help="CA name")
    e10.add_argument("--username", required=True)
    e10.add_argument("--enrollment-code", required=True, help="End entity password")
    e10.add_argument("--no-chain", action="store_true", help="Do not request the CA chain")
    e10.add_argument("--out", default="enrolled.pem", help="Where to write the issued certificate")
    e10.set_defaults(func=do_enroll_pkcs10)

    # ---- SignServer
    sg = sub.add_parser("sign", help="SignServer operations")
    sgsub = sg.add_subparsers(dest="sub", required=True)
    sp = sgsub.add_parser("process", help="Send a document to a worker")
    sp.add_argument("--worker", required=True, help="Worker name or id")
    sp.add_argument("--infile", required=True)
    sp.add_argument("--out", required=True)
    sp.add_argument("--meta", nargs="*", metavar="KEY=VALUE", help="Request metadata")
    sp.set_defaults(func=do_sign_process)

    return p

# ---------------- Entry ----------------
def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if hasattr(args, "func"):
        try:
            return args.func(args)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            print(f"[error] {e}", file=sys.stderr)
            return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
