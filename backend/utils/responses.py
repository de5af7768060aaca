"""
JSON envelope shared by every API route: {ok, data, error, message}
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


def _envelope(ok: bool, data: Any, error: Optional[str], message: str) -> dict:
    return {
        "ok": ok,
        "data": {} if data is None else data,
        "error": error,
        "message": message,
    }


def success_response(data: Any = None, message: str = "OK", status: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status, content=_envelope(True, data, None, message))


def error_response(error_code: str, status: int = 400, message: str = "An error occurred", data: Any = None) -> JSONResponse:
    """Failure envelope; `error_code` is a stable machine-readable string such as `not_found`."""
    return JSONResponse(status_code=status, content=_envelope(False, data, error_code, message))
