"""FastAPI application serving a built element tree."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from typing import Any, List

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from elembuild.errors import ElemBuildError
from elembuild.pipeline.builder import LOADER_FILENAME, Builder
from elembuild.web.loader import boot_page

LOGGER = logging.getLogger(__name__)


class PackPayload(BaseModel):
    files: List[str]


def _request_domain(request: Request) -> str:
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"


def _basepath(url_path: str) -> str:
    return posixpath.dirname(url_path) or "/"


def _check_build_name(builder: Builder, name: str) -> None:
    clean = posixpath.normpath(name)
    if clean.startswith(("/", "..")) or "\0" in name:
        raise HTTPException(status_code=400, detail=f"Invalid path: {name}")
    if not (builder.build_root / clean).is_file():
        raise HTTPException(status_code=404, detail=f"File not built: {name}")


def create_app(builder: Builder, *, domain: str | None = None, max_age: int = 0) -> FastAPI:
    """Serve ``builder``'s build root, rebuilding on demand.

    The tree is built once when the app is created. In development mode every
    request for ``/loader.js`` rebuilds and regenerates the loader; in
    production the loader is generated once. Rebuilds run one at a time.
    """
    builder.build()
    builder.build_root.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="elembuild", version="0.1.0")
    state = {"loader_valid": False}
    build_lock = asyncio.Lock()

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @app.middleware("http")
    async def cache_headers(request: Request, call_next):
        response = await call_next(request)
        if max_age and request.method == "GET" and response.status_code == 200:
            response.headers.setdefault("Cache-Control", f"public, max-age={max_age}")
        return response

    @app.get("/loader.js")
    async def loader(request: Request) -> FileResponse:
        async with build_lock:
            try:
                if not builder.production:
                    await asyncio.to_thread(builder.build)
                    state["loader_valid"] = False
                if not state["loader_valid"]:
                    builder.build_loader(
                        domain or _request_domain(request), _basepath(request.url.path)
                    )
                    state["loader_valid"] = True
            except ElemBuildError as exc:
                LOGGER.error("Build failed: %s", exc)
                raise HTTPException(status_code=500, detail=str(exc)) from exc
        return FileResponse(
            builder.build_root / LOADER_FILENAME, media_type="application/javascript"
        )

    @app.get("/boot", response_class=HTMLResponse)
    async def boot() -> HTMLResponse:
        return HTMLResponse(content=boot_page(builder.tag_name))

    @app.get("/_index")
    async def current_index() -> dict[str, Any]:
        return builder.index.to_dict()

    @app.post("/_pack")
    async def pack_files(payload: PackPayload) -> Response:
        if not payload.files:
            raise HTTPException(status_code=400, detail="No files provided")
        for name in payload.files:
            _check_build_name(builder, name)
        return Response(content=builder.pack(payload.files), media_type="application/json")

    app.mount("/", StaticFiles(directory=builder.build_root), name="build")
    return app
