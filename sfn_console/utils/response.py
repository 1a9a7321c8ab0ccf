"""Response envelopes returned to the dashboard front end.

Every diagram request answers with one of two shapes:

    {"ok": true,  "data": {...}, "warnings": [...]}     # warnings optional
    {"ok": false, "error": {"message": ..., "code": ..., "details": {...}}}
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ErrorCode(str, Enum):
    """Machine-readable error codes understood by the front end."""
    LAYOUT_FAILED = "LAYOUT_FAILED"
    UNKNOWN_ENGINE = "UNKNOWN_ENGINE"


def is_success(result: Dict[str, Any]) -> bool:
    return bool(result.get("ok"))


def success_response(
    data: Any,
    warnings: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Wrap a payload in the success envelope.

    Args:
        data: Payload (React Flow elements, legend, ...)
        warnings: Non-fatal notes, e.g. dropped dangling references;
            omitted from the envelope when empty
    """
    response: Dict[str, Any] = {"ok": True, "data": data}
    if warnings:
        response["warnings"] = list(warnings)
    return response


def error_response(
    message: str,
    code: Optional[Union[ErrorCode, str]] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Wrap a failure in the error envelope.

    Args:
        message: Human-readable message shown in the error banner
        code: Optional ErrorCode (or plain string code)
        details: Optional structured context
    """
    error: Dict[str, Any] = {"message": message}
    if code:
        error["code"] = code.value if isinstance(code, ErrorCode) else code
    if details:
        error["details"] = details
    return {"ok": False, "error": error}
