# taskhub/utils/response.py
import math
from typing import Any, Optional


def success_response(data: Any = None, message: Optional[str] = None, meta: Optional[dict] = None) -> dict:
    return {"success": True, "message": message, "data": data, "meta": meta}


def created_response(data: Any, message: str = "Resource created successfully") -> dict:
    return success_response(data, message)


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def paginated_response(items: list, page: int, limit: int, total: int, message: Optional[str] = None) -> dict:
    return success_response(items, message, pagination_meta(page, limit, total))


def error_body(code: str, message: str, errors: Optional[list] = None) -> dict:
    error = {"code": code, "message": message}
    if errors:
        error["errors"] = errors
    return {"success": False, "error": error}
