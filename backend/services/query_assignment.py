"""Assigns each query to the chunk that should be optimized for it."""
import logging
from typing import Dict, List, Optional

from config import ASSIGNMENT_MIN_SCORE
from models.assignment import ChunkAssignment, ChunkScoreData, QueryAssignment, QueryAssignmentMap
from models.scores import DocumentAnalysis

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 150


def chunk_scores_from_analysis(analysis: DocumentAnalysis) -> List[ChunkScoreData]:
    """Collect per-chunk passage scores keyed by query from a document analysis."""
    chunk_scores = []
    for index, chunk in enumerate(analysis.chunks):
        scores = {query: bundles[index].passage_score for query, bundles in analysis.results.items()}
        chunk_scores.append(ChunkScoreData(
            chunk_index=index,
            text=chunk.text_without_cascade,
            scores=scores,
            heading=chunk.heading_path[-1] if chunk.heading_path else None,
        ))
    return chunk_scores


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def group_by_chunk(chunk_scores: List[ChunkScoreData], assignments: List[QueryAssignment]) -> List[ChunkAssignment]:
    """Group assignments per chunk, ordered by chunk index; chunks with no queries are omitted."""
    grouped: Dict[int, List[QueryAssignment]] = {}
    for assignment in assignments:
        grouped.setdefault(assignment.assigned_chunk_index, []).append(assignment)

    result = []
    for chunk_index in sorted(grouped):
        if not 0 <= chunk_index < len(chunk_scores):
            continue
        chunk = chunk_scores[chunk_index]
        queries = sorted(grouped[chunk_index], key=lambda a: (not a.is_primary, -a.score))
        result.append(ChunkAssignment(
            chunk_index=chunk_index,
            chunk_preview=_preview(chunk.text),
            assigned_queries=queries,
            average_score=sum(a.score for a in queries) / len(queries),
            chunk_heading=chunk.heading,
        ))
    return result


def compute_query_assignments(
    chunk_scores: List[ChunkScoreData],
    queries: List[str],
    min_score: float = ASSIGNMENT_MIN_SCORE,
) -> QueryAssignmentMap:
    """
    Assign each query to the chunk where its passage score is highest.

    The first query is the primary query. On ties the earliest chunk wins.
    Queries whose best score is zero or below min_score stay unassigned.

    Args:
        chunk_scores: Per-chunk scores keyed by query
        queries: Query strings, primary first
        min_score: Minimum score for a valid assignment

    Returns:
        QueryAssignmentMap with assignments, per-chunk groups and unassigned queries
    """
    assignments: List[QueryAssignment] = []
    unassigned: List[str] = []

    for query_index, query in enumerate(queries):
        best_index = -1
        best_score = 0
        for chunk_index, chunk in enumerate(chunk_scores):
            score = chunk.scores.get(query, 0)
            if score > best_score:
                best_index, best_score = chunk_index, score

        if best_index >= 0 and best_score >= min_score:
            assignments.append(QueryAssignment(
                query=query,
                assigned_chunk_index=best_index,
                score=best_score,
                is_primary=query_index == 0,
            ))
        else:
            unassigned.append(query)

    logger.debug(f"Assigned {len(assignments)} of {len(queries)} queries, {len(unassigned)} unassigned")
    return QueryAssignmentMap(
        assignments=assignments,
        chunk_assignments=group_by_chunk(chunk_scores, assignments),
        unassigned_queries=unassigned,
    )


def reassign_query(
    assignment_map: QueryAssignmentMap,
    query: str,
    new_chunk_index: int,
    chunk_scores: List[ChunkScoreData],
    primary_query: Optional[str] = None,
) -> QueryAssignmentMap:
    """
    Manually move a query to another chunk.

    The query's score becomes its score on the new chunk. A previously
    unassigned query becomes assigned.
    """
    def score_on(index: int) -> float:
        if 0 <= index < len(chunk_scores):
            return chunk_scores[index].scores.get(query, 0)
        return 0

    assignments = []
    found = False
    for assignment in assignment_map.assignments:
        if assignment.query == query:
            found = True
            assignment = QueryAssignment(
                query=query,
                assigned_chunk_index=new_chunk_index,
                score=score_on(new_chunk_index),
                is_primary=assignment.is_primary,
            )
        assignments.append(assignment)

    if not found:
        assignments.append(QueryAssignment(
            query=query,
            assigned_chunk_index=new_chunk_index,
            score=score_on(new_chunk_index),
            is_primary=query == primary_query,
        ))

    return QueryAssignmentMap(
        assignments=assignments,
        chunk_assignments=group_by_chunk(chunk_scores, assignments),
        unassigned_queries=[q for q in assignment_map.unassigned_queries if q != query],
    )
