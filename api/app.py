from __future__ import annotations
from collections import Counter
from fastapi import BackgroundTasks, Body, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import logging, os, typing as t

from cad_core import config, notify
from cad_core.config import load_config, get_backend
from cad_core.insights import (
    generate_assessment_nudge,
    generate_career_guidance,
    generate_dashboard_insight,
    generate_personalized_insights,
)
from cad_core.question_bank import load_bank
from cad_core.report_html import render_report_html
from cad_core.scoring import ScoringError, result_from_dict, score
from cad_core.validators import check_submission, parse_responses
from .storage import AssessmentStore, make_store, new_record

config.configure_logging()
log = logging.getLogger(__name__)

_cfg = load_config()
app = FastAPI(title="CAD Diagnostic API")
app.state.store = make_store(_cfg["STORAGE_BACKEND"], _cfg["DATA_DIR"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.ALLOWED_ORIGINS),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,  # keep False unless you use cookies
)


# ---- Schemas ----
class ScoreReq(BaseModel):
    responses: list[dict[str, t.Any]]

class AssessmentReq(BaseModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    responses: list[dict[str, t.Any]]
    insights: bool = True

class ProfileReq(BaseModel):
    id: str
    full_name: str
    email: str
    phone: str | None = None

class DashboardReq(BaseModel):
    user_id: str | None = None
    name: str | None = None
    quadrant: int | None = None
    pathway: str | None = None
    pillar_scores: dict[str, int] | None = None

class GuidanceReq(BaseModel):
    question: str
    quadrant: int | None = None
    pathway: str | None = None
    name: str | None = None

class NudgeReq(BaseModel):
    question_number: int
    total_questions: int = 20
    pillar: str
    quality: str
    chosen_label: str


# ---- Helpers ----
def _store() -> AssessmentStore:
    return app.state.store


def _parse_or_422(payloads: list[dict[str, t.Any]]):
    try:
        return parse_responses(payloads, load_bank())
    except ValueError as e:  # InvalidPayloadError, BankError
        raise HTTPException(422, str(e))


def _score_or_422(responses):
    try:
        return score(responses)
    except ScoringError as e:
        raise HTTPException(422, str(e))


def _require_admin(key: str | None) -> None:
    # admin console is off entirely until a key is configured
    if not config.ADMIN_API_KEY:
        raise HTTPException(404, "admin console disabled")
    if key != config.ADMIN_API_KEY:
        raise HTTPException(403, "invalid admin key")


def _load_or_404(assessment_id: str) -> dict[str, t.Any]:
    record = _store().load_assessment(assessment_id)
    if not record:
        raise HTTPException(404, "assessment not found")
    return record


# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "cad-diagnostic-api"}

@app.get("/health")
def health():
    cfg = load_config()
    return {
        "llm_backend": get_backend(cfg) or "none",
        "storage_backend": _store().name,
        "email_configured": bool(os.getenv("RESEND_API_KEY")),
        "notify_enabled": config.NOTIFY_ENABLED,
    }


# ---- Diagnostic ----
@app.get("/questions")
def questions():
    return {
        "questions": [
            {
                "id": q.id,
                "pillar": q.pillar.value,
                "stage": q.stage,
                "quality": q.quality,
                "statement": q.statement,
                "options": [{"quadrant": int(o.quadrant), "label": o.label} for o in q.options],
            }
            for q in load_bank()
        ]
    }

@app.post("/score")
def score_endpoint(req: ScoreReq):
    result = _score_or_422(_parse_or_422(req.responses))
    return result.to_dict()

@app.post("/assessments")
def create_assessment(req: AssessmentReq, background: BackgroundTasks):
    bank = load_bank()
    responses = _parse_or_422(req.responses)
    report = check_submission(responses, bank)
    if not report.complete:
        raise HTTPException(422, f"incomplete submission: {report.describe()}")
    result = _score_or_422(responses)

    insights = generate_personalized_insights(result, responses, req.name) if req.insights else None
    record = _store().save_assessment(new_record(req.user_id, responses, result, insights))
    log.info("assessment %s saved for user %s (Q%d)", record["id"], req.user_id, record["quadrant"])

    if req.email:
        background.add_task(notify.fire_and_forget, notify.notify_admin_result, req.name or req.email, req.email)
    return record

@app.get("/assessments/{assessment_id}")
def get_assessment(assessment_id: str):
    return _load_or_404(assessment_id)

@app.get("/assessments/{assessment_id}/html")
def get_assessment_html(assessment_id: str):
    return {"html": render_report_html(_load_or_404(assessment_id))}

@app.delete("/assessments/{assessment_id}")
def delete_assessment(assessment_id: str):
    if not _store().delete_assessment(assessment_id):
        raise HTTPException(404, "assessment not found")
    return {"ok": True}

@app.get("/users/{user_id}/assessments")
def list_user_assessments(user_id: str):
    return {"assessments": _store().list_assessments_for_user(user_id)}


# ---- Profiles ----
@app.post("/profiles")
def upsert_profile(req: ProfileReq, background: BackgroundTasks):
    is_new = _store().get_profile(req.id) is None
    profile = _store().upsert_profile(req.model_dump())
    if is_new:
        background.add_task(notify.fire_and_forget, notify.send_welcome_email, req.full_name, req.email)
        background.add_task(notify.fire_and_forget, notify.notify_admin_signup, req.full_name, req.email)
    return profile


# ---- Coaching ----
@app.post("/insights/dashboard")
def dashboard_insight(req: DashboardReq):
    quadrant, pathway, pillar_scores = req.quadrant, req.pathway, req.pillar_scores
    if quadrant is None and req.user_id:
        history = _store().list_assessments_for_user(req.user_id)
        if history and history[0].get("cad_results"):
            latest = result_from_dict(history[0]["cad_results"])
            quadrant = int(latest.dominant_quadrant)
            pathway = latest.strategic_pathway.value
            pillar_scores = {p.value: s for p, s in latest.pillar_scores.items()}
    return generate_dashboard_insight(quadrant, pathway, pillar_scores, req.name).to_dict()

@app.post("/guidance")
def guidance(req: GuidanceReq):
    if not req.question.strip():
        raise HTTPException(422, "question is empty")
    return {"reply": generate_career_guidance(req.question, req.quadrant, req.pathway, req.name)}

@app.post("/nudge")
def nudge(req: NudgeReq = Body(...)):
    text = generate_assessment_nudge(
        req.question_number, req.total_questions, req.pillar, req.quality, req.chosen_label
    )
    return {"nudge": text}


# ---- Admin ----
@app.get("/admin/stats")
def admin_stats(x_admin_key: str | None = Header(None)):
    _require_admin(x_admin_key)
    rows = _store().list_assessments(limit=10_000)
    quadrants = Counter(str(r.get("quadrant")) for r in rows)
    pathways = Counter(str(r.get("pathway")) for r in rows)
    # rows without a stored result carry no readiness
    readiness = [
        float(r["cad_results"]["readinessForQ4"]) for r in rows
        if (r.get("cad_results") or {}).get("readinessForQ4") is not None
    ]
    return {
        "total_users": len(_store().list_profiles(limit=10_000)),
        "total_assessments": len(rows),
        "quadrant_distribution": {q: quadrants.get(q, 0) for q in ("1", "2", "3", "4")},
        "pathway_distribution": dict(pathways),
        "average_readiness": (sum(readiness) / len(readiness)) if readiness else None,
    }

@app.get("/admin/users")
def admin_users(x_admin_key: str | None = Header(None), limit: int = Query(100, ge=1, le=1000)):
    _require_admin(x_admin_key)
    return {"users": _store().list_profiles(limit=limit)}

@app.get("/admin/assessments")
def admin_assessments(x_admin_key: str | None = Header(None), limit: int = Query(100, ge=1, le=1000)):
    _require_admin(x_admin_key)
    return {"assessments": _store().list_assessments(limit=limit)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.app:app", host=os.getenv("HOST", "127.0.0.1"), port=config._env_int("PORT", 8000))
