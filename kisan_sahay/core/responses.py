from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request


def _meta(request_id: Optional[str]) -> Dict[str, str]:
    return {
        "requestId": request_id or str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def success_body(data: Any = None, request_id: Optional[str] = None) -> Dict[str, Any]:
    return {"success": True, "data": data, "meta": _meta(request_id)}


def error_body(code: str, message: str, details: Any = None, request_id: Optional[str] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error, "meta": _meta(request_id)}


def ok(request: Request, data: Any = None) -> Dict[str, Any]:
    """Wrap route output in the success envelope."""
    return success_body(data, getattr(request.state, "request_id", None))
