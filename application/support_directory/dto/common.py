import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while keeping snake_case attributes"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    return PaginationMeta(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


def api_response(message: str, data: Any = None, success: bool = True) -> dict:
    """Standard envelope: {success, message, data}"""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    elif isinstance(data, list):
        data = [item.model_dump(by_alias=True, mode="json") if isinstance(item, BaseModel) else item for item in data]
    return {"success": success, "message": message, "data": data}


def paginated(items: list, page: int, limit: int, total: int) -> dict:
    return {
        "items": [item.model_dump(by_alias=True, mode="json") if isinstance(item, BaseModel) else item for item in items],
        "pagination": build_pagination(page, limit, total).model_dump(),
    }


def clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
