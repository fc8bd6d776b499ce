import json
import sys
from pathlib import Path

import pytest

from scripts.align_files import load_plan, main

FIXTURES = Path(__file__).parent / "fixtures"


def test_load_plan_accepts_object_or_step_list(tmp_path: Path) -> None:
    steps = [{"step": 1, "focus_area": "Setup"}]
    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps(steps), encoding="utf-8")
    assert load_plan(as_list) == {"step_plan": steps}
    assert load_plan(FIXTURES / "plan.json")["step_plan"][0]["focus_area"] == "Plans"
    scalar = tmp_path / "scalar.json"
    scalar.write_text("3", encoding="utf-8")
    assert load_plan(scalar) == {}


def test_main_writes_merged_markdown(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "merged.md"
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "align_files.py",
            str(FIXTURES / "original.md"),
            str(FIXTURES / "regenerated.md"),
            str(FIXTURES / "plan.json"),
            "--out",
            str(out),
            "--blocks",
        ],
    )

    assert main() == 0

    merged = out.read_text(encoding="utf-8")
    assert "| Pro | $20 |" in merged
    assert "## Security" not in merged
    printed = capsys.readouterr().out
    assert f"[align] saved to {out}" in printed
    assert "[align] [1] Plans -> Plans and Pricing Tiers" in printed
    assert "[align] [2] Setup -> Setup" in printed
    assert "plans | heading" in printed
