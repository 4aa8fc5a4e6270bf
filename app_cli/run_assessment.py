from __future__ import annotations
import os, datetime, argparse
from cad_core import config
from cad_core.insights import generate_assessment_nudge, generate_personalized_insights
from cad_core.question_bank import load_bank
from cad_core.report_html import export_report_html
from cad_core.scoring import score
from cad_core.types import QUADRANT_PROFILES
from cad_core.validators import response_for
from api.storage import new_record


def ask(prompt: str, options) -> int:
    print(prompt)
    for i, opt in enumerate(options, start=1): print(f"  [{i}] {opt.label}")
    while True:
        v = input("Your choice (1-4): ").strip()
        if v in {"1", "2", "3", "4"}: return int(v)
        print("Enter a number from 1 to 4.")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Run the CAD Diagnostic in the terminal")
    ap.add_argument("--name", default=None)
    ap.add_argument("--nudges", action="store_true", help="show a short reflection after each answer")
    args = ap.parse_args(argv)
    config.configure_logging()

    print("CAD Diagnostic")
    bank = load_bank(); responses = []
    for n, q in enumerate(bank):
        choice = ask(f"\n({n + 1}/{len(bank)}) [{q.pillar.value}: {q.quality}] {q.statement}", q.options)
        opt = q.options[choice - 1]
        responses.append(response_for(q, opt.quadrant))
        if args.nudges:
            print("  > " + generate_assessment_nudge(n, len(bank), q.pillar.value, q.quality, opt.label))

    res = score(responses)
    profile = QUADRANT_PROFILES[res.dominant_quadrant]
    print(f"\nQ{int(res.dominant_quadrant)}: {profile.name} ({profile.subtitle})")
    print(f"Pathway: {res.strategic_pathway.value}")
    print(f"Readiness for mastery: {res.readiness_for_q4:.1f}%  "
          f"internal leverage: {res.internal_leverage:.1f}%  external system: {res.external_system:.1f}%")
    for p, s in res.pillar_scores.items(): print(f"  {p.value:<11} {s}")

    insights = generate_personalized_insights(res, responses, args.name)
    print("\n" + insights.summary)
    record = new_record(args.name or "cli", responses, res, insights)
    os.makedirs("reports", exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    path = export_report_html(record, os.path.join("reports", f"cad_report_{ts}.html"))
    print(f"Done. Report saved to: {path}")
if __name__ == "__main__": main()
