"""Ingestion pipeline — document → chunk → embed → store."""

from technodog.pipeline.ingest import IngestPipeline
from technodog.pipeline.schemas import IngestedChunk, IngestResult, SourceDocument

__all__ = ["IngestPipeline", "IngestResult", "IngestedChunk", "SourceDocument"]
