from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import Response
from .api.api import api_router
from .core.errors import NewsdeskError, newsdesk_error_handler
from .db.database import create_tables, get_session_maker
from .services.users import bootstrap_admin
import logging
import json
import traceback

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # make sure tables are created
    create_tables()
    session = get_session_maker()()
    try:
        bootstrap_admin(session)
    finally:
        session.close()
    yield

logger = logging.getLogger("fastapi")

app = FastAPI(title="Newsdesk API", lifespan=lifespan)

app.add_exception_handler(NewsdeskError, newsdesk_error_handler)

REDACTED_HEADERS = {"authorization", "cookie"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    body = await request.body()
    request_info = {
        "url": str(request.url),
        "method": request.method,
        "headers": {
            key: ("***" if key.lower() in REDACTED_HEADERS else value)
            for key, value in request.headers.items()
        },
        # credentials travel in auth request bodies
        "body": body.decode(errors="replace") if body and "/auth/" not in request.url.path else None,
        "path_params": request.path_params,
        "query_params": dict(request.query_params)
    }

    try:
        # execute the request
        response = await call_next(request)

        if response.status_code >= 400:
            response_body = b""
            async for chunk in response.body_iterator:
                response_body += chunk

            logger.error(
                f"Request failed with status {response.status_code}\n"
                f"Request: {json.dumps(request_info, indent=2)}\n"
                f"Response: {response_body.decode(errors='replace')}\n"
            )
            return Response(
                content=response_body,
                status_code=response.status_code,
                headers=dict(response.headers),
                media_type=response.media_type
            )

        return response

    except Exception as e:
        logger.error(
            f"Request failed with exception\n"
            f"Request: {json.dumps(request_info, indent=2)}\n"
            f"Error: {str(e)}\n"
            f"Traceback: {traceback.format_exc()}"
        )
        raise

# register the API router
app.include_router(api_router, prefix="/api")
