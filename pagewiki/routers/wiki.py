from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from pagewiki.frontend import FrontEndDispatcher
from pagewiki.models import ErrorResponse

router = APIRouter(tags=["wiki"])

ERROR_RESPONSES = {
    500: {"model": ErrorResponse},
}

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def parse_boolish(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in TRUTHY_VALUES


def get_frontend(request: Request) -> FrontEndDispatcher:
    return request.app.state.frontend


Frontend = Annotated[FrontEndDispatcher, Depends(get_frontend)]


@router.get("/", response_class=HTMLResponse, responses=ERROR_RESPONSES)
async def index(request: Request, frontend: Frontend):
    return await frontend.list_pages(request)


@router.get("/wiki/{page}", response_class=HTMLResponse, responses=ERROR_RESPONSES)
async def page_rendering(page: str, request: Request, frontend: Frontend):
    return await frontend.view_page(request, page)


@router.post("/create", response_class=RedirectResponse)
async def page_create(frontend: Frontend, name: Annotated[str, Form()] = ""):
    return frontend.create_page(name.strip())


@router.post("/save", response_class=RedirectResponse, responses=ERROR_RESPONSES)
async def page_update(
    frontend: Frontend,
    title: Annotated[str, Form(min_length=1)],
    markdown: Annotated[str, Form()] = "",
    id: Annotated[int, Form()] = -1,
    new_page: Annotated[str | None, Form(alias="newPage")] = None,
):
    return await frontend.save_page(id, title, markdown, parse_boolish(new_page))


@router.post("/delete", response_class=RedirectResponse, responses=ERROR_RESPONSES)
async def page_deletion(frontend: Frontend, id: Annotated[int, Form()]):
    return await frontend.delete_page(id)
