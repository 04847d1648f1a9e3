# SPDX-License-Identifier: Apache-2.0
from typing import Optional

CONFIGDUMP_HINT = (
    "Make sure the 'REST Configdump' protocol is enabled on the server "
    "(System Configuration > Protocol Configuration)."
)


class EjbcaRestError(RuntimeError):
    """Base class for every error surfaced to the operator."""


class NoCandidateCertificate(EjbcaRestError):
    pass


class InvalidSelection(EjbcaRestError, ValueError):
    pass


class RequestFailed(EjbcaRestError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class EndpointUnavailable(EjbcaRestError):
    def __init__(self, message: str, status_code: Optional[int] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.hint = hint

    def __str__(self):
        msg = super().__str__()
        if self.hint:
            msg += f" {self.hint}"
        return msg
