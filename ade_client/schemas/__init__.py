from ade_client.schemas.extract import ExtractionMetadata, ExtractionResult
from ade_client.schemas.jobs import JobStatus, ParseJob, ParseJobList
from ade_client.schemas.parse import (
    BoundingBox,
    Chunk,
    ChunkType,
    Grounding,
    ParseMetadata,
    ParseResult,
    Split,
)

__all__ = [
    "BoundingBox",
    "Chunk",
    "ChunkType",
    "ExtractionMetadata",
    "ExtractionResult",
    "Grounding",
    "JobStatus",
    "ParseJob",
    "ParseJobList",
    "ParseMetadata",
    "ParseResult",
    "Split",
]
