"""HTTP transport for the registered sync operations.

The signed-in user is taken from ``Authorization: Bearer <access token>``
and resolved through Supabase auth; requests without a valid token run
as signed out and receive the operation's sign-in result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...api import api_state, call_as_user, get_api_function, get_api_functions
from ...data import DataSourceError
from ...logging import configure_logging

logger = logging.getLogger(__name__)

DATA_SOURCE_UNAVAILABLE = "The data source is unavailable. Reload to try again."

app = FastAPI(title="Schedule Sync API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ApiCallRequest(BaseModel):
    arguments: Dict[str, Any] = Field(default_factory=dict)


def current_user_id(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return api_state.context.gateway.user_id_for_token(token)


@app.get("/api/functions")
def list_api_functions(category: Optional[str] = None) -> JSONResponse:
    return JSONResponse({"functions": [func.describe() for func in get_api_functions(category)]})


@app.post("/api/functions/{function_name}")
def invoke_api_function(
    function_name: str,
    request: ApiCallRequest,
    user_id: Optional[str] = Depends(current_user_id),
) -> JSONResponse:
    try:
        get_api_function(function_name)
    except KeyError as exc:
        logger.warning("API function not found: %s", function_name)
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    try:
        result = call_as_user(function_name, user_id, request.arguments)
    except DataSourceError as exc:
        logger.exception("API function %s could not reach the data source", function_name)
        raise HTTPException(status_code=503, detail=DATA_SOURCE_UNAVAILABLE) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("API function %s failed", function_name)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.debug("API function %s executed for user %s", function_name, user_id)
    return JSONResponse({"name": function_name, "result": result})


def run_local_server(host: str = "127.0.0.1", port: int = 8000) -> None:
    import asyncio
    from hypercorn.asyncio import serve
    from hypercorn.config import Config

    configure_logging()
    config = Config()
    config.bind = [f"{host}:{port}"]
    logger.info("Serving Schedule Sync API on %s", config.bind[0])
    asyncio.run(serve(app, config))
