from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from artifacts.write import generate_report
from verify.verify import DeterminismResult, verify_determinism

if TYPE_CHECKING:
    from pathlib import Path


def _write_minimal_repo(root: Path) -> None:
    (root / "src").mkdir(parents=True, exist_ok=True)
    (root / "src" / "Map.cs").write_text(
        "class C\n"
        "{\n"
        "    void M(ITransformationMap<Linker> map)\n"
        "    {\n"
        "        map.Ignore(l => Id(l.Link));\n"
        "        map.Ignore(l => l.Link);\n"
        "    }\n"
        "}\n",
        encoding="utf-8",
    )


def test_verify_determinism_requires_report_dir(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    missing_dir = tmp_path / "missing"
    with pytest.raises(FileNotFoundError, match="Report directory does not exist"):
        verify_determinism(root=repo_root, report_dir=missing_dir)


def test_verify_determinism_rejects_file(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    report_file = tmp_path / "report.txt"
    report_file.write_text("", encoding="utf-8")

    with pytest.raises(NotADirectoryError):
        verify_determinism(root=repo_root, report_dir=report_file)


def test_verify_determinism_accepts_fresh_report(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)
    report_dir = tmp_path / "report"

    result = generate_report(root=repo_root, out_dir=report_dir)

    assert result["diagnostic_count"] == 1
    assert verify_determinism(root=repo_root, report_dir=report_dir) == DeterminismResult(
        ok=True
    )


def test_verify_determinism_relative_paths_and_sorted_mismatches(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    report_dir = tmp_path / "report"
    report_dir.mkdir()

    for rel_path, content in (
        ("b.txt", "b-original"),
        ("a.txt", "a-original"),
        ("stale.txt", "stale"),
    ):
        path = report_dir / rel_path
        path.write_text(content, encoding="utf-8")

    def _fake_generate_report(
        *, root: Path, out_dir: Path, config: object = None
    ) -> dict[str, object]:
        (out_dir / "a.txt").write_text("a-original", encoding="utf-8")
        (out_dir / "b.txt").write_text("b-regenerated", encoding="utf-8")
        (out_dir / "new.txt").write_text("new", encoding="utf-8")
        return {"artifacts": [str(out_dir / "a.txt"), str(out_dir / "b.txt")]}

    monkeypatch.setattr("verify.verify.generate_report", _fake_generate_report)

    result = verify_determinism(root=repo_root, report_dir=report_dir)

    assert result == DeterminismResult(
        ok=False,
        mismatches=("b.txt",),
        missing=("stale.txt",),
        extra=("new.txt",),
    )
