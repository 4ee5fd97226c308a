# rental_auth/core/exceptions.py
from enum import Enum
from typing import Dict, List, Optional


class ErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    MALFORMED_TOKEN = "malformed_token"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    REVOKED = "revoked"
    USER_NOT_FOUND = "user_not_found"
    NOT_AUTHORIZED = "not_authorized"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"


# Falhas do verificador de token: todas viram 401 na borda
TOKEN_FAILURES = frozenset({
    ErrorKind.MALFORMED_TOKEN,
    ErrorKind.BAD_SIGNATURE,
    ErrorKind.EXPIRED,
    ErrorKind.REVOKED,
    ErrorKind.USER_NOT_FOUND,
})


class TokenDecodeError(Exception):
    """Levantada por security.decode_access_token; o verificador converte em Err."""
    def __init__(self, kind: ErrorKind, message: str = "Invalid token"):
        self.kind = kind
        self.message = message
        super().__init__(self.message)


class ApiError(Exception):
    """Erro renderizado no envelope padrão pelo handler registrado em main.py."""
    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[List[str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)
