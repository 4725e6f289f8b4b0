"""Main entry point for the chunk scoring API."""
import logging
from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import ASSIGNMENT_MIN_SCORE, CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL, PORT, SCORING_WORKERS
from logger import setup_logging
from models.api import AnalyzeRequest, AnalyzeResponse, ChunkRequest, ChunkResponse
from models.chunk import ConfigurationError
from services.chunking_engine import ChunkingEngine
from services.passage_scorer import DocumentScorer
from services.query_assignment import chunk_scores_from_analysis, compute_query_assignments

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Chunkscope",
    description="Layout-aware chunking and RAG relevance scoring for markdown documents",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Configure logging on startup."""
    setup_logging(LOG_LEVEL, json_format=LOG_FORMAT == "json")
    logger.info(f"Chunkscope API ready (scoring workers: {SCORING_WORKERS})")


@app.get("/health")
async def health():
    """Health check."""
    return {
        "status": "healthy",
        "service": "chunkscope",
        "version": "1.0.0"
    }


@app.post("/chunk", response_model=ChunkResponse)
async def chunk_endpoint(request: ChunkRequest) -> ChunkResponse:
    """
    Chunk a markdown document.

    Args:
        request: ChunkRequest with markdown and optional chunker options

    Returns:
        ChunkResponse with the chunks and document statistics

    Raises:
        HTTPException: 400 for invalid options, 500 for unexpected failures
    """
    try:
        engine = ChunkingEngine(request.options.to_options())
        chunks = engine.chunk(request.markdown)
        stats = engine.get_document_stats(request.markdown)
        logger.info(
            f"Chunked document of {stats['char_count']} chars into {len(chunks)} chunks",
            extra={"char_count": stats["char_count"], "chunk_count": len(chunks)},
        )
        return ChunkResponse(chunks=[asdict(chunk) for chunk in chunks], stats=stats)

    except ConfigurationError as e:
        logger.warning(f"Rejected chunker options: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error chunking document: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_endpoint(request: AnalyzeRequest) -> AnalyzeResponse:
    """
    Chunk a document and score every chunk against every query.

    Semantic similarity is supplied by the caller; embeddings are never
    computed here.

    Args:
        request: AnalyzeRequest with markdown, queries and semantic scores

    Returns:
        AnalyzeResponse with chunks, per-query score bundles and query assignments

    Raises:
        HTTPException: 400 for invalid input, 500 for unexpected failures
    """
    try:
        queries = [query.strip() for query in request.queries if query and query.strip()]
        semantic_scores = {query.strip(): values for query, values in request.semantic_scores.items()}
        scorer = DocumentScorer(request.options.to_options())
        analysis = scorer.score_document(request.markdown, queries, semantic_scores)

        min_score = request.min_assignment_score
        assignments = compute_query_assignments(
            chunk_scores_from_analysis(analysis),
            list(analysis.results),
            ASSIGNMENT_MIN_SCORE if min_score is None else min_score,
        )

        logger.info(
            f"Analyzed {len(analysis.chunks)} chunks against {len(queries)} queries, "
            f"{len(assignments.unassigned_queries)} unassigned",
            extra={
                "chunk_count": len(analysis.chunks),
                "query_count": len(queries),
                "unassigned_count": len(assignments.unassigned_queries),
            },
        )
        return AnalyzeResponse(
            chunks=[asdict(chunk) for chunk in analysis.chunks],
            results={
                query: [asdict(bundle) for bundle in bundles]
                for query, bundles in analysis.results.items()
            },
            assignments=asdict(assignments),
        )

    except ValueError as e:
        # ConfigurationError and SimilarityError are ValueErrors
        logger.warning(f"Rejected analysis request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error analyzing document: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
