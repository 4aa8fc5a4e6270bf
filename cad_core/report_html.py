from __future__ import annotations
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .question_bank import PILLARS, QUADRANTS
from .types import QUADRANT_PROFILES


def _pct(value: Any) -> str:
    try:
        return f"{float(value):.1f}%"
    except (TypeError, ValueError):
        return "-"


def _list_block(title: str, items: Any) -> str:
    if not isinstance(items, list) or not items:
        return ""
    lis = "".join(f"<li>{escape(str(i))}</li>" for i in items)
    return f"<h3>{escape(title)}</h3><ul>{lis}</ul>"


def _pillar_rows(scores: Mapping[str, Any], counts_by_pillar: Mapping[str, int]) -> str:
    rows: List[str] = []
    for p in PILLARS:
        score = scores.get(p.value, 0)
        n = counts_by_pillar.get(p.value, 0)
        max_pts = n * 4
        rows.append(
            f"<tr><td>{p.value}</td><td>{score}</td><td>{max_pts or '-'}</td><td>{n}</td></tr>"
        )
    return "\n".join(rows)


def _answered_per_pillar(responses: Any) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for r in responses if isinstance(responses, list) else []:
        if isinstance(r, Mapping):
            p = str(r.get("pillar") or "")
            out[p] = out.get(p, 0) + 1
    return out


def render_report_html(record: Mapping[str, Any], title: str = "CAD Diagnostic Report") -> str:
    """Render a stored assessment record (see api.storage) as a standalone HTML page."""
    res: Mapping[str, Any] = record.get("cad_results") or {}
    insights: Mapping[str, Any] = record.get("ai_insights") or {}
    dominant = int(res.get("dominantQuadrant") or record.get("quadrant") or 0)
    profile = next((p for q, p in QUADRANT_PROFILES.items() if int(q) == dominant), None)
    headline = f"Q{dominant}: {profile.name}" if profile else "No result"
    subtitle = profile.subtitle if profile else ""

    counts = res.get("quadrantCounts") or {}
    dist = "".join(
        f"<tr><td>Q{int(q)}</td><td>{QUADRANT_PROFILES[q].name}</td><td>{counts.get(str(int(q)), 0)}</td></tr>"
        for q in QUADRANTS
    )
    pillar_rows = _pillar_rows(res.get("pillarScores") or {}, _answered_per_pillar(record.get("responses")))

    summary = insights.get("summary")
    summary_html = f"<p class=\"summary\">{escape(str(summary))}</p>" if summary else ""
    message = insights.get("motivationalMessage")
    message_html = f"<blockquote>{escape(str(message))}</blockquote>" if message else ""

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>{escape(title)}</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .wrap{{max-width:960px;margin:40px auto;padding:0 16px}}
 table{{border-collapse:collapse;width:100%;margin-bottom:16px}}
 th,td{{text-align:left;border:1px solid #ddd;padding:6px}}
</style>
</head>
<body>
<div class="wrap">
  <h1>{escape(title)}</h1>
  <p class="meta">Completed {escape(str(record.get("completed_at") or ""))}</p>
  <h2>{escape(headline)}</h2>
  <p>{escape(subtitle)}</p>
  <p><b>Strategic pathway:</b> {escape(str(res.get("strategicPathway") or record.get("pathway") or ""))}</p>
  <table>
    <tr><th>Readiness for mastery</th><th>Internal leverage</th><th>External system</th><th>Responses</th></tr>
    <tr><td>{_pct(res.get("readinessForQ4"))}</td><td>{_pct(res.get("internalLeverage"))}</td>
        <td>{_pct(res.get("externalSystem"))}</td><td>{escape(str(res.get("totalResponses", "")))}</td></tr>
  </table>
  <h3>Pillar scores</h3>
  <table>
    <thead><tr><th>Pillar</th><th>Score</th><th>Max</th><th>Answered</th></tr></thead>
    <tbody>{pillar_rows}</tbody>
  </table>
  <h3>Quadrant distribution</h3>
  <table>
    <thead><tr><th>Quadrant</th><th>Profile</th><th>Responses</th></tr></thead>
    <tbody>{dist}</tbody>
  </table>
  {summary_html}
  {_list_block("Strengths", insights.get("strengths"))}
  {_list_block("Areas for growth", insights.get("areasForGrowth"))}
  {_list_block("Action steps", insights.get("actionSteps"))}
  {message_html}
</div>
</body>
</html>"""


def export_report_html(record: Mapping[str, Any], path: str) -> str:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_report_html(record), encoding="utf-8")
    return str(out)
