from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def ok(data=None, meta=None):
    return JSONResponse(
        content={
            "ok": True,
            "data": data,
            "meta": meta or {},
        }
    )


def error(message: str, code: str = "error", status: int = 400, extra: Optional[Dict[str, Any]] = None):
    content: Dict[str, Any] = {
        "ok": False,
        "error": code,
        "message": message,
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status, content=content)
