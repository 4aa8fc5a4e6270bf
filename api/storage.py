"""Persistence for assessment records and member profiles.

Two interchangeable stores share the :class:`AssessmentStore` interface: a
JSON-on-disk store (default, no external service needed) and a Supabase-backed
store that writes to the ``assessments`` and ``profiles`` tables. The app picks
one at startup with :func:`make_store` and keeps it for the process lifetime.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from cad_core import config
from cad_core.types import CADAssessmentResult, PersonalizedInsights, Response

log = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_record(
    user_id: str,
    responses: Sequence[Response],
    result: CADAssessmentResult,
    insights: Optional[PersonalizedInsights],
    *,
    completed_at: str | None = None,
) -> Dict[str, Any]:
    """Shape one completed assessment the way both stores persist it."""
    now = completed_at or utcnow_iso()
    return {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "quadrant": int(result.dominant_quadrant),
        "pathway": result.strategic_pathway.value,
        "responses": [r.to_dict() for r in responses],
        "cad_results": result.to_dict(),
        "ai_insights": insights.to_dict() if insights else None,
        "completed_at": now,
        "created_at": now,
    }


class AssessmentStore(Protocol):
    name: str

    def save_assessment(self, record: Dict[str, Any]) -> Dict[str, Any]: ...
    def load_assessment(self, assessment_id: str) -> Optional[Dict[str, Any]]: ...
    def list_assessments_for_user(self, user_id: str) -> List[Dict[str, Any]]: ...
    def list_assessments(self, limit: int = 100) -> List[Dict[str, Any]]: ...
    def delete_assessment(self, assessment_id: str) -> bool: ...
    def upsert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]: ...
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]: ...
    def list_profiles(self, limit: int = 100) -> List[Dict[str, Any]]: ...


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        log.warning("unreadable JSON at %s; treating as empty", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def _newest_first(rows: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    rows.sort(key=lambda r: r.get(key, ""), reverse=True)
    return rows


class JsonStore:
    name = "json"

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()
        self.assessments_dir = self.root / "assessments"
        self.index_path = self.root / "assessments_index.json"
        self.profiles_path = self.root / "profiles.json"
        self._lock = threading.Lock()

    def _index(self) -> Dict[str, Dict[str, Any]]:
        return _read_json(self.index_path, {})

    def save_assessment(self, record: Dict[str, Any]) -> Dict[str, Any]:
        rid = record.get("id") or str(uuid.uuid4())
        record = dict(record, id=rid)
        meta = {
            "user_id": record.get("user_id"),
            "quadrant": record.get("quadrant"),
            "pathway": record.get("pathway"),
            "completed_at": record.get("completed_at"),
            "readiness": (record.get("cad_results") or {}).get("readinessForQ4"),
        }
        with self._lock:
            _write_json(self.assessments_dir / f"{rid}.json", record)
            index = self._index()
            index[rid] = meta
            _write_json(self.index_path, index)
        return record

    def load_assessment(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        path = self.assessments_dir / f"{assessment_id}.json"
        return _read_json(path, None)

    def _load_many(self, ids: List[str]) -> List[Dict[str, Any]]:
        out = []
        for rid in ids:
            rec = self.load_assessment(rid)
            if rec:
                out.append(rec)
        return _newest_first(out, "completed_at")

    def list_assessments_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        index = self._index()
        return self._load_many([rid for rid, meta in index.items() if meta.get("user_id") == user_id])

    def list_assessments(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self._load_many(list(self._index()))[:limit]

    def delete_assessment(self, assessment_id: str) -> bool:
        removed = False
        with self._lock:
            index = self._index()
            if assessment_id in index:
                index.pop(assessment_id, None)
                _write_json(self.index_path, index)
                removed = True
            path = self.assessments_dir / f"{assessment_id}.json"
            if path.exists():
                path.unlink()
        return removed

    def upsert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            profiles: Dict[str, Dict[str, Any]] = _read_json(self.profiles_path, {})
            existing = profiles.get(profile["id"], {})
            merged = {**existing, **profile, "updated_at": utcnow_iso()}
            merged.setdefault("created_at", merged["updated_at"])
            profiles[profile["id"]] = merged
            _write_json(self.profiles_path, profiles)
        return merged

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return _read_json(self.profiles_path, {}).get(user_id)

    def list_profiles(self, limit: int = 100) -> List[Dict[str, Any]]:
        rows = list(_read_json(self.profiles_path, {}).values())
        return _newest_first(rows, "created_at")[:limit]


class SupabaseStore:
    name = "supabase"

    def __init__(self, client: Any) -> None:
        self.client = client

    def save_assessment(self, record: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.client.table("assessments").insert(record).execute()
        return (resp.data or [record])[0]

    def load_assessment(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        resp = self.client.table("assessments").select("*").eq("id", assessment_id).limit(1).execute()
        return resp.data[0] if resp.data else None

    def list_assessments_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        resp = (
            self.client.table("assessments").select("*")
            .eq("user_id", user_id).order("completed_at", desc=True).execute()
        )
        return list(resp.data or [])

    def list_assessments(self, limit: int = 100) -> List[Dict[str, Any]]:
        resp = (
            self.client.table("assessments").select("*")
            .order("completed_at", desc=True).limit(limit).execute()
        )
        return list(resp.data or [])

    def delete_assessment(self, assessment_id: str) -> bool:
        resp = self.client.table("assessments").delete().eq("id", assessment_id).execute()
        return bool(resp.data)

    def upsert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(profile, updated_at=utcnow_iso())
        resp = self.client.table("profiles").upsert(row).execute()
        return (resp.data or [row])[0]

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        resp = self.client.table("profiles").select("*").eq("id", user_id).limit(1).execute()
        return resp.data[0] if resp.data else None

    def list_profiles(self, limit: int = 100) -> List[Dict[str, Any]]:
        resp = (
            self.client.table("profiles").select("*")
            .order("created_at", desc=True).limit(limit).execute()
        )
        return list(resp.data or [])


@lru_cache(maxsize=1)
def supabase_client() -> Any:
    from supabase import create_client

    url = os.getenv("SUPABASE_URL", "")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    if not url or not key:
        raise RuntimeError("Supabase not configured. Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    try:
        return create_client(url, key)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e


def make_store(backend: str | None = None, data_dir: str | None = None) -> AssessmentStore:
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "supabase":
        return SupabaseStore(supabase_client())
    if backend != "json":
        raise ValueError(f"unknown STORAGE_BACKEND {backend!r}")
    return JsonStore(data_dir or config.DATA_DIR)
