"""Response helpers shared by the API routes."""

from __future__ import annotations

from fastapi.responses import JSONResponse, Response

from recruiter_call_assistant.config import get_settings

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def preflight_response() -> Response:
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def internal_error_response(message: str, error: Exception) -> JSONResponse:
    """500 response; the exception text is only exposed outside production."""
    body: dict[str, str] = {"error": message}
    if not get_settings().is_production:
        body["details"] = str(error)
    return JSONResponse(body, status_code=500)
