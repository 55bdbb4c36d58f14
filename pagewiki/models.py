from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# message header carrying the action tag
ACTION = "action"


class Action(str, Enum):
    GET_PAGE = "get-page"
    ALL_PAGES = "all-pages"
    CREATE_PAGE = "create-page"
    SAVE_PAGE = "save-page"
    DELETE_PAGE = "delete-page"


class GetPageRequest(BaseModel):
    page: str


class CreatePageRequest(BaseModel):
    title: str = Field(..., min_length=1)
    markdown: str


class SavePageRequest(BaseModel):
    id: int
    markdown: str


class DeletePageRequest(BaseModel):
    id: int


class GetPageReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    found: bool
    id: Optional[int] = None
    raw_content: Optional[str] = Field(default=None, alias="rawContent")


class AllPagesReply(BaseModel):
    pages: list[str]


class HealthResponse(BaseModel):
    ok: bool


class ReadyResponse(BaseModel):
    ready: bool
    reason: str | None = None


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | None = None
