"""
Standard API response envelope shared by every router and error handler.
"""

from typing import Any, Optional


def success_response(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "data": data, "message": message}


def error_response(message: str = "Error", data: Any = None, error_code: Optional[str] = None) -> dict:
    body = {"success": False, "data": data, "message": message}
    if error_code:
        body["error_code"] = error_code
    return body
