# SPDX-License-Identifier: Apache-2.0
###########################
# EJBCA REST SDK Definition
##########################


# ejbcarest/__init__.py
from .certstore import (
    CertificateStore,
    ClientCertificate,
    DirectoryCertificateStore,
    StaticCertificateStore,
    load_client_certificate,
)
from .configdump import ExportFormat, ExportRequest, ExportResult, build_query, export_config
from .errors import (
    EjbcaRestError,
    EndpointUnavailable,
    InvalidSelection,
    NoCandidateCertificate,
    RequestFailed,
)
from .selector import select_client_certificate

__all__ = [
    "CertificateStore",
    "ClientCertificate",
    "DirectoryCertificateStore",
    "StaticCertificateStore",
    "load_client_certificate",
    "ExportFormat",
    "ExportRequest",
    "ExportResult",
    "build_query",
    "export_config",
    "EjbcaRestError",
    "EndpointUnavailable",
    "InvalidSelection",
    "NoCandidateCertificate",
    "RequestFailed",
    "select_client_certificate",
]
