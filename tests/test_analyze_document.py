"""Tests for the analyze_document command line tool."""
import sys
sys.path.insert(0, 'backend')

import json

import pytest
from analyze_document import build_report, main
from models.chunk import ChunkerOptions


DOCUMENT = """# Employee Onboarding

Onboarding typically takes 6 weeks for new hires.

## Costs

The program costs $2,000 per employee.
"""


@pytest.fixture
def document_file(tmp_path):
    path = tmp_path / "article.md"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


class TestBuildReport:

    def test_chunks_only(self):
        report = build_report(DOCUMENT, ["anything"], {}, ChunkerOptions(), chunks_only=True)

        assert set(report) == {"stats", "chunks"}
        assert [c["id"] for c in report["chunks"]] == ["chunk-0", "chunk-1"]

    def test_no_queries_only_chunks(self):
        report = build_report(DOCUMENT, [], {}, ChunkerOptions())
        assert "queries" not in report

    def test_full_report(self):
        report = build_report(
            DOCUMENT,
            ["program cost"],
            {"program cost": [0.1, 0.9]},
            ChunkerOptions(),
        )

        query = report["queries"]["program cost"]
        assert query["best_chunk"] == "chunk-1"
        assert query["interpretation"]
        assert len(query["scores"]) == 2
        assert report["assignments"]["assignments"][0]["assigned_chunk_index"] == 1

    def test_report_is_json_serializable(self):
        report = build_report(DOCUMENT, ["onboarding"], {}, ChunkerOptions())
        json.dumps(report)


class TestMain:

    def test_writes_report_to_stdout(self, document_file, capsys):
        assert main([str(document_file), "-q", "program cost", "--log-level", "WARNING"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert list(report["queries"]) == ["program cost"]

    def test_output_file_and_queries_file(self, document_file, tmp_path):
        queries = tmp_path / "queries.txt"
        queries.write_text("program cost\n\nonboarding time\n", encoding="utf-8")
        scores = tmp_path / "scores.json"
        scores.write_text(json.dumps({"program cost": [0.1, 0.9]}), encoding="utf-8")
        output = tmp_path / "report.json"

        code = main([
            str(document_file), "--queries-file", str(queries),
            "--semantic-scores", str(scores), "--output", str(output),
        ])

        assert code == 0
        report = json.loads(output.read_text(encoding="utf-8"))
        assert list(report["queries"]) == ["program cost", "onboarding time"]

    def test_missing_document(self, tmp_path):
        assert main([str(tmp_path / "missing.md")]) == 1

    def test_bad_semantic_scores(self, document_file, tmp_path):
        scores = tmp_path / "scores.json"
        scores.write_text("{not json", encoding="utf-8")
        assert main([str(document_file), "-q", "cost", "--semantic-scores", str(scores)]) == 1

    def test_invalid_options(self, document_file):
        assert main([str(document_file), "--max-chunk-size", "50", "--chunk-overlap", "50"]) == 2

    @pytest.mark.parametrize("payload", [
        {"cost": 0.5},
        {"cost": ["high", 0.2]},
        {"cost": [True, 0.2]},
        [0.5, 0.2],
    ])
    def test_semantic_scores_wrong_shape(self, document_file, tmp_path, payload):
        scores = tmp_path / "scores.json"
        scores.write_text(json.dumps(payload), encoding="utf-8")
        assert main([str(document_file), "-q", "cost", "--semantic-scores", str(scores)]) == 1
