"""File-backed blob store for the board document.

Two routes: ``GET /api/data`` returns the last saved document (or the empty
one), ``POST /api/data`` overwrites it. Run with::

    python -m tracker.store_server
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from tracker.config import TrackerConfig, get_config
from tracker.logging_setup import setup_logging
from tracker.models import empty_document_dict

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    ok: bool
    data_file: str
    exists: bool


class DocumentFile:
    """The single JSON file holding the whole document."""

    def __init__(self, config: TrackerConfig) -> None:
        self.path = config.data_file

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return empty_document_dict()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Error reading file %s: %s", self.path, exc)
            raise
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("Error parsing JSON in %s: %s", self.path, exc)
            return empty_document_dict()

    def write(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")


def create_app(config: Optional[TrackerConfig] = None) -> FastAPI:
    cfg = config or get_config()
    store = DocumentFile(cfg)
    app = FastAPI(title="work-tracker-store", version="1.0")

    @app.get("/healthz", response_model=HealthResponse)
    def healthz() -> HealthResponse:
        return HealthResponse(ok=True, data_file=str(store.path), exists=store.path.exists())

    @app.get("/api/data")
    def get_data() -> JSONResponse:
        try:
            return JSONResponse(store.read())
        except OSError as exc:
            raise HTTPException(status_code=500, detail=str(exc))

    @app.post("/api/data")
    async def save_data(request: Request) -> PlainTextResponse:
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > cfg.max_body_bytes:
            raise HTTPException(status_code=413, detail="Payload too large")
        body = await request.body()
        if len(body) > cfg.max_body_bytes:
            raise HTTPException(status_code=413, detail="Payload too large")
        try:
            document = json.loads(body or b"null")
        except ValueError:
            raise HTTPException(status_code=422, detail="Body must be JSON")
        if not isinstance(document, dict):
            raise HTTPException(status_code=422, detail="Body must be a JSON object")
        try:
            await run_in_threadpool(store.write, document)
        except OSError as exc:
            logger.error("Error writing file %s: %s", store.path, exc)
            raise HTTPException(status_code=500, detail=str(exc))
        return PlainTextResponse("Data saved successfully")

    return app


def main() -> None:
    import uvicorn

    cfg = get_config()
    setup_logging(cfg.log_level, cfg.log_dir)
    logger.info("Server running at http://localhost:%s data=%s", cfg.port, cfg.data_file)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
