import json
import logging
import os
import uuid
from starlette.requests import Request
from starlette.responses import Response

def setup_logging():
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

async def inject_request_id(request: Request, call_next):
    req_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
    logger = logging.getLogger("pagewiki.access")
    request.state.req_id = req_id
    response: Response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info(json.dumps({
        "msg": "request",
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
    }))
    return response
