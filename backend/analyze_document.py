"""
Analyze a markdown document from the command line.

Chunks the document, scores every chunk against the given queries and prints
a JSON report.

Usage:
    python analyze_document.py article.md -q "how long does onboarding take" -q "onboarding cost"
    python analyze_document.py article.md --queries-file queries.txt --semantic-scores scores.json
    python analyze_document.py article.md --chunks-only
"""
import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import config
from logger import setup_logging
from models.chunk import ChunkerOptions, ConfigurationError
from services.chunking_engine import ChunkingEngine
from services.passage_scorer import DocumentScorer, get_passage_score_interpretation
from services.query_assignment import chunk_scores_from_analysis, compute_query_assignments

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Chunk a markdown document and score it against queries")
    parser.add_argument("document", help="Path to a markdown file")
    parser.add_argument("-q", "--query", action="append", default=[], dest="queries",
                        help="Target query (repeatable; the first is the primary query)")
    parser.add_argument("--queries-file", help="File with one query per line")
    parser.add_argument("--semantic-scores",
                        help="JSON file mapping each query to a list of per-chunk similarities")
    parser.add_argument("--max-chunk-size", type=int, default=config.CHUNK_SIZE)
    parser.add_argument("--chunk-overlap", type=int, default=config.CHUNK_OVERLAP)
    parser.add_argument("--no-cascade", action="store_true", help="Do not prefix chunks with heading cascade")
    parser.add_argument("--chunks-only", action="store_true", help="Only chunk; skip scoring")
    parser.add_argument("--min-score", type=float, default=config.ASSIGNMENT_MIN_SCORE,
                        help="Minimum passage score for a query assignment")
    parser.add_argument("--output", help="Write the report here instead of stdout")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser.parse_args(argv)


def load_queries(args) -> list:
    queries = list(args.queries)
    if args.queries_file:
        lines = Path(args.queries_file).read_text(encoding="utf-8").splitlines()
        queries.extend(line.strip() for line in lines if line.strip())
    return queries


def load_semantic_scores(path: str) -> dict:
    """Read a JSON object mapping each query to a list of per-chunk similarities."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("semantic scores must be a JSON object keyed by query")
    for query, values in data.items():
        if not isinstance(values, list) or not all(
            isinstance(value, (int, float)) and not isinstance(value, bool) for value in values
        ):
            raise ValueError(f"semantic scores for {query!r} must be a list of numbers")
    return {query.strip(): values for query, values in data.items()}


def build_report(markdown: str, queries: list, semantic_scores: dict, options: ChunkerOptions,
                 chunks_only: bool = False, min_score: float = 0) -> dict:
    """Build the JSON-serializable analysis report."""
    engine = ChunkingEngine(options)
    report = {"stats": engine.get_document_stats(markdown)}

    if chunks_only or not queries:
        report["chunks"] = [asdict(chunk) for chunk in engine.chunk(markdown)]
        return report

    analysis = DocumentScorer(options).score_document(markdown, queries, semantic_scores)
    assignments = compute_query_assignments(chunk_scores_from_analysis(analysis), list(analysis.results), min_score)

    report["chunks"] = [asdict(chunk) for chunk in analysis.chunks]
    report["queries"] = {}
    for query, bundles in analysis.results.items():
        best = max(bundles, key=lambda bundle: bundle.passage_score, default=None)
        report["queries"][query] = {
            "best_chunk": best.chunk_id if best else None,
            "best_passage_score": best.passage_score if best else None,
            "interpretation": get_passage_score_interpretation(best.passage_score) if best else None,
            "scores": [asdict(bundle) for bundle in bundles],
        }
    report["assignments"] = asdict(assignments)
    return report


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        markdown = Path(args.document).read_text(encoding="utf-8")
        semantic_scores = {}
        if args.semantic_scores:
            semantic_scores = load_semantic_scores(args.semantic_scores)
        options = ChunkerOptions(
            max_chunk_size=args.max_chunk_size,
            chunk_overlap=args.chunk_overlap,
            cascade_headings=not args.no_cascade,
        ).validate()
        report = build_report(markdown, load_queries(args), semantic_scores, options,
                              chunks_only=args.chunks_only, min_score=args.min_score)
    except ConfigurationError as e:
        logger.error(f"Invalid chunker options: {e}")
        return 2
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read input: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 1

    output = json.dumps(report, indent=2)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info(f"Report written to {args.output}")
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
