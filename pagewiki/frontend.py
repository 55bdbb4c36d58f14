from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

from fastapi import status
from fastapi.responses import RedirectResponse
from starlette.requests import Request
from starlette.responses import Response

from pagewiki.core.bus import EventBus
from pagewiki.core.errors import APIError, ReplyException
from pagewiki.models import (
    ACTION,
    Action,
    AllPagesReply,
    CreatePageRequest,
    DeletePageRequest,
    GetPageReply,
    GetPageRequest,
    SavePageRequest,
)
from pagewiki.rendering import render, render_template

logger = logging.getLogger("pagewiki.frontend")

EMPTY_PAGE_TMPL = "This is the new empty page\n\nUse markdown syntax to write you text"


def redirect(page_name: str | None = None) -> RedirectResponse:
    location = f"/wiki/{quote(page_name, safe='')}" if page_name else "/"
    return RedirectResponse(location, status_code=status.HTTP_303_SEE_OTHER)


class FrontEndDispatcher:
    """Turns each page request into one envelope on the bus and one response."""

    def __init__(self, bus: EventBus, address: str, timeout: float | None = None):
        self.bus = bus
        self.address = address
        self.timeout = timeout

    async def send(self, action: Action, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            reply = await self.bus.request(
                self.address,
                payload,
                headers={ACTION: action.value},
                timeout=self.timeout,
            )
        except ReplyException as e:
            logger.error("%s failed: %r", action.value, e)
            raise APIError(
                500,
                "server_error",
                e.message,
                details={"failure": e.failure.value, "code": e.code.value if e.code else None},
            )
        return reply.body or {}

    async def view_page(self, request: Request, name: str) -> Response:
        logger.debug("Handle page (page=%s) render", name)
        body = await self.send(Action.GET_PAGE, GetPageRequest(page=name).model_dump())
        page = GetPageReply.model_validate(body)
        raw_content = (page.raw_content or "") if page.found else EMPTY_PAGE_TMPL
        context = {
            "title": name,
            "id": page.id if page.found else -1,
            "newPage": not page.found,
            "rawContent": raw_content,
            "content": render(raw_content),
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }
        return render_template(request, "page.html", context)

    async def list_pages(self, request: Request) -> Response:
        logger.debug("Handle index page")
        body = await self.send(Action.ALL_PAGES)
        pages = AllPagesReply.model_validate(body).pages
        return render_template(request, "index.html", {"title": "Wiki home", "pages": pages})

    def create_page(self, name: str | None) -> RedirectResponse:
        logger.debug("Handle page (name=%s) creation", name)
        return redirect(name)

    async def save_page(self, id: int, title: str, markdown: str, new_page: bool) -> RedirectResponse:
        logger.debug("Handle page (title=%s) update, new_page=%s", title, new_page)
        if new_page:
            await self.send(Action.CREATE_PAGE, CreatePageRequest(title=title, markdown=markdown).model_dump())
        else:
            await self.send(Action.SAVE_PAGE, SavePageRequest(id=id, markdown=markdown).model_dump())
        return redirect(title)

    async def delete_page(self, id: int) -> RedirectResponse:
        logger.debug("Handle page (id=%s) deletion", id)
        await self.send(Action.DELETE_PAGE, DeletePageRequest(id=id).model_dump())
        return redirect()
