from __future__ import annotations

import importlib
import sys
from typing import Mapping

import pytest

from cad_core import config
from cad_core.question_bank import PILLARS, QUADRANTS, quadrant_states
from cad_core.types import Pillar, QuadrantLevel, Response


def build_responses(
    counts: Mapping[int, int],
    *,
    pillar: Pillar | None = None,
) -> list[Response]:
    """Responses with the given per-quadrant counts, pillars cycling unless one is pinned."""

    out: list[Response] = []
    for q in QUADRANTS:
        for _ in range(counts.get(int(q), 0)):
            internal, external = quadrant_states(q)
            out.append(
                Response(
                    quadrant=q,
                    internal_state=internal,
                    external_state=external,
                    pillar=pillar or PILLARS[len(out) % len(PILLARS)],
                )
            )
    return out


def build_raw_question(qid: int, pillar: str = "Capability", stage: int = 1) -> dict:
    """One well-formed bank entry in the on-disk JSON shape."""

    options = []
    for q in QUADRANTS:
        internal, external = quadrant_states(q)
        options.append(
            {
                "quadrant": int(q),
                "label": f"option Q{int(q)}",
                "internal_state": internal.value,
                "external_state": external.value,
            }
        )
    return {
        "id": qid,
        "pillar": pillar,
        "stage": stage,
        "quality": f"Quality {qid}",
        "statement": f"Question {qid}?",
        "options": options,
    }


def build_synthetic_bank_raw(per_pillar: int = 3) -> list[dict]:
    raw: list[dict] = []
    for p in PILLARS:
        for i in range(per_pillar):
            raw.append(build_raw_question(len(raw) + 1, p.value, stage=(i % 3) + 1))
    return raw


def answer_payloads(bank, quadrant: int | QuadrantLevel = 4) -> list[dict]:
    """Short-form answers (questionId + quadrant) for every question in ``bank``."""

    return [{"questionId": q.id, "quadrant": int(quadrant)} for q in bank]


def reload_app(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    if "api.storage" in sys.modules:
        importlib.reload(sys.modules["api.storage"])
    else:
        import api.storage  # noqa: F401
    if "api.app" in sys.modules:
        importlib.reload(sys.modules["api.app"])
    else:
        import api.app  # noqa: F401
    return sys.modules["api.storage"], sys.modules["api.app"]


@pytest.fixture(autouse=True)
def offline(monkeypatch):
    """Keep every test away from real LLM and email backends."""

    monkeypatch.delenv("LLM_BACKEND", raising=False)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    monkeypatch.setattr(config, "LLM_BACKEND", "none")
    monkeypatch.setattr(config, "LLM_LOG_PATH", "")
    monkeypatch.setattr(config, "NOTIFY_ENABLED", False)
