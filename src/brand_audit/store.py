"""Audit persistence contract plus in-memory and JSON-file implementations."""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

from .errors import StoreError
from .models import Audit, Difficulty, Priority, Section, SubScore


logger = logging.getLogger(__name__)


class AuditStore(Protocol):
    """Idempotent key-value persistence of audits by id."""

    def put(self, audit: Audit) -> None:
        ...

    def get(self, audit_id: str) -> Optional[Audit]:
        ...


def audit_to_dict(audit: Audit) -> dict[str, Any]:
    """JSON-compatible representation of an audit."""
    return {
        "id": audit.id,
        "url": audit.url,
        "title": audit.title,
        "created_at": audit.created_at.isoformat(),
        "overall_score": audit.overall_score,
        "summary": audit.summary,
        "sections": [
            {
                "name": s.name,
                "score": s.score,
                "max_score": s.max_score,
                "weight": s.weight,
                "issues": s.issues,
                "recommendations": s.recommendations,
                "priority": s.priority.value,
                "difficulty": s.difficulty.value,
                "details": s.details,
                "sub_scores": [
                    {"name": sub.name, "score": sub.score, "max_score": sub.max_score}
                    for sub in s.sub_scores
                ],
            }
            for s in audit.sections
        ],
        "metadata": dict(audit.metadata),
    }


def audit_from_dict(data: dict[str, Any]) -> Audit:
    """Rebuild an audit written by audit_to_dict.

    Raises:
        StoreError: if required fields are missing or malformed
    """
    try:
        sections = tuple(
            Section(
                name=s["name"],
                score=float(s["score"]),
                weight=float(s["weight"]),
                sub_scores=tuple(
                    SubScore(name=sub["name"], score=float(sub["score"]), max_score=int(sub.get("max_score", 100)))
                    for sub in s.get("sub_scores", [])
                ),
                issues=int(s.get("issues", 0)),
                recommendations=int(s.get("recommendations", 0)),
                details=s.get("details", ""),
                priority=Priority(s.get("priority", "medium")),
                difficulty=Difficulty(s.get("difficulty", "medium")),
                max_score=int(s.get("max_score", 100)),
            )
            for s in data["sections"]
        )
        return Audit(
            id=str(data["id"]),
            url=data["url"],
            title=data.get("title", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
            overall_score=float(data["overall_score"]),
            sections=sections,
            summary=data.get("summary", ""),
            metadata=dict(data.get("metadata") or {}),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed audit record: {e}") from e


class MemoryAuditStore:
    """Process-local store, mainly for tests and one-shot runs."""

    def __init__(self):
        self._audits: dict[str, Audit] = {}

    def put(self, audit: Audit) -> None:
        self._audits[audit.id] = audit

    def get(self, audit_id: str) -> Optional[Audit]:
        return self._audits.get(audit_id)

    def __len__(self) -> int:
        return len(self._audits)


class JsonFileAuditStore:
    """One ``<id>.json`` file per audit in a directory. Writes replace atomically."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, audit_id: str) -> Path:
        if not audit_id or "/" in audit_id or "\\" in audit_id or audit_id.startswith("."):
            raise StoreError(f"Invalid audit id: {audit_id!r}")
        return self.directory / f"{audit_id}.json"

    def put(self, audit: Audit) -> None:
        path = self._path(audit.id)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(audit_to_dict(audit), f, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Could not save audit {audit.id}: {e}") from e
        logger.debug("Saved audit %s to %s", audit.id, path)

    def get(self, audit_id: str) -> Optional[Audit]:
        path = self._path(audit_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read audit {audit_id}: {e}") from e
        return audit_from_dict(data)

    def load_file(self, path: str | Path) -> Audit:
        """Load an audit from an explicit JSON file path."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e
        return audit_from_dict(data)

    def list_ids(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
