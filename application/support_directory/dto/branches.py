from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, field_validator

from support_directory.dto.common import CamelModel, clean_optional


class BranchView(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_id: str
    branch_name: str
    wa_link: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BranchCreateRequest(CamelModel):
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    wa_link: Optional[str] = None

    @field_validator("branch_id", "branch_name", "wa_link")
    @classmethod
    def strip_values(cls, v):
        return clean_optional(v)


class BranchUpdateRequest(BranchCreateRequest):
    pass
