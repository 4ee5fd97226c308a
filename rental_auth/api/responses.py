# rental_auth/api/responses.py
from typing import Any, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rental_auth.core.exceptions import ApiError, ErrorKind, TOKEN_FAILURES
from rental_auth.core.result import Err


class Envelope(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
    errors: Optional[List[str]] = None


# Mapeamento exaustivo ErrorKind -> status HTTP
ERROR_STATUS = {
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    **{kind: status.HTTP_401_UNAUTHORIZED for kind in TOKEN_FAILURES},
    ErrorKind.NOT_AUTHORIZED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}
_unmapped = set(ErrorKind) - set(ERROR_STATUS)
if _unmapped:
    raise RuntimeError(f"ErrorKind sem status HTTP: {sorted(kind.value for kind in _unmapped)}")


def render_success(message: str, data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    content: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def render_error(
    message: str, errors: Optional[List[str]] = None, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def error_for(result: Err, message: Optional[str] = None) -> ApiError:
    """Converte um Err do serviço em ApiError; o handler em main.py renderiza o envelope."""
    return ApiError(ERROR_STATUS[result.kind], message or result.message, result.errors or None)
