from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from tracker.config import TrackerConfig, get_config
from tracker.models import Document

logger = logging.getLogger(__name__)

DATA_PATH = "/api/data"


@dataclass(frozen=True)
class SaveResult:
    ok: bool
    status_code: int
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "status_code": self.status_code, "error": self.error}


class DocumentStoreClient:
    """Reads and writes the whole board document against the blob store.

    ``load`` never raises: any failure yields the empty document so the UI
    can still render. ``save`` reports failure in its result instead of
    raising; there is no retry and no rollback.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_seconds = int(timeout_seconds)
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Optional[TrackerConfig] = None) -> "DocumentStoreClient":
        cfg = config or get_config()
        return cls(base_url=cfg.api_url, timeout_seconds=cfg.api_timeout_seconds)

    @property
    def url(self) -> str:
        return f"{self.base_url}{DATA_PATH}"

    def load(self) -> Document:
        try:
            resp = self._session.get(
                self.url,
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Error connecting to store url=%s: %s", self.url, exc)
            return Document.empty()

        if resp.status_code != 200:
            logger.error("Failed to load data from store status=%s", resp.status_code)
            return Document.empty()

        try:
            payload = resp.json()
        except ValueError:
            logger.error("Store returned malformed JSON url=%s", self.url)
            return Document.empty()

        document = Document.from_dict(payload)
        logger.debug(
            "Loaded document releases=%s feature_areas=%s tasks=%s",
            len(document.releases),
            len(document.feature_areas),
            len(document.tasks),
        )
        return document

    def save(self, document: Document) -> SaveResult:
        try:
            resp = self._session.post(
                self.url,
                json=document.to_dict(),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Error saving data to store url=%s: %s", self.url, exc)
            return SaveResult(ok=False, status_code=0, error=str(exc))

        status = int(resp.status_code)
        if 200 <= status < 300:
            return SaveResult(ok=True, status_code=status)

        detail = (resp.text or "")[:500] or f"HTTP {status}"
        logger.error("Store rejected save status=%s detail=%s", status, detail)
        return SaveResult(ok=False, status_code=status, error=detail)
