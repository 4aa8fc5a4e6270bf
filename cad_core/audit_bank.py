from __future__ import annotations

import argparse, json
from pathlib import Path
from typing import Iterable

from . import config
from .question_bank import PILLARS, load_bank_raw, option_errors, parse_bank
from .types import Question


def _blank_pillar() -> dict[str, object]:
    return {
        "stages": {stage: 0 for stage in config.BANK_EXPECT_STAGES},
        "questions": 0,
        "max_points": 0,
    }


def audit_items(items: Iterable[Question]) -> dict[str, object]:
    coverage: dict[str, dict[str, object]] = {p.value: _blank_pillar() for p in PILLARS}
    totals = {"questions": 0, "options": 0}
    seen_ids: dict[int, int] = {}
    warnings: list[str] = []

    for item in items:
        pillar_data = coverage.setdefault(str(getattr(item.pillar, "value", item.pillar)), _blank_pillar())
        pillar_data["questions"] += 1  # type: ignore[operator]
        pillar_data["max_points"] += 4  # type: ignore[operator]
        stages: dict[int, int] = pillar_data["stages"]  # type: ignore[assignment]
        stages[item.stage] = stages.get(item.stage, 0) + 1
        if item.stage not in config.BANK_EXPECT_STAGES:
            warnings.append(f"question {item.id} has unexpected stage {item.stage}")

        totals["questions"] += 1
        totals["options"] += len(item.options)
        seen_ids[item.id] = seen_ids.get(item.id, 0) + 1
        warnings.extend(option_errors(item.id, item.options))

    for qid, n in sorted(seen_ids.items()):
        if n > 1:
            warnings.append(f"question id {qid} appears {n} times")

    for pillar, data in coverage.items():
        n = data["questions"]
        if n < config.BANK_MIN_PER_PILLAR:  # type: ignore[operator]
            warnings.append(f"{pillar} has {n} questions (<{config.BANK_MIN_PER_PILLAR})")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def _format_row(label: str, stages: Iterable[int], data: dict[int, int]) -> str:
    parts = [label]
    for stage in stages:
        parts.append(f"stage {stage}:{data.get(stage, 0):3d}")
    return "  ".join(parts)


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print("=== CAD Question Bank ===")
    for pillar, data in coverage.items():
        print(f"\n{pillar:<11} {data['questions']:>2} questions  max {data['max_points']} points")
        print("  " + _format_row("", config.BANK_EXPECT_STAGES, data["stages"]))  # type: ignore[arg-type]

    problems: list[str] = summary["warnings"]  # type: ignore[assignment]
    print(f"\n{len(problems)} warning(s)" if problems else "\nBank is consistent.")
    for msg in problems:
        print(f"  ! {msg}")
    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path = Path("bank_audit.json")) -> str:
    path.write_text(json.dumps(summary, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return str(path)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Audit the CAD question bank")
    ap.add_argument("--out", default="bank_audit.json", help="where to write the JSON summary")
    args = ap.parse_args(argv)

    summary = audit_items(parse_bank(load_bank_raw(), strict=False))
    print_report(summary)
    write_summary(summary, Path(args.out))
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
