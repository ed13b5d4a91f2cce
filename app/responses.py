"""Success envelope shared by the intake endpoints"""

from typing import Any, Optional

from fastapi.responses import JSONResponse


def success_response(data: Any, status_code: int = 200, message: Optional[str] = None) -> JSONResponse:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def options_response() -> JSONResponse:
    """Plain OPTIONS answer; browser preflights are handled by CORSMiddleware"""
    return success_response({"message": "OK"})
