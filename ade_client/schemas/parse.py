"""Parse response models.

The service reports grounding boxes either normalised to the page (0-1) or in
pixels depending on the model version, so ``BoundingBox`` keeps the raw values
and offers conversions in both directions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChunkType(str, Enum):
    TEXT = "text"
    TABLE = "table"
    FIGURE = "figure"
    MARGINALIA = "marginalia"
    LOGO = "logo"
    SCAN_CODE = "scan_code"
    FORM = "form"
    ATTESTATION = "attestation"
    CARD = "card"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> ChunkType:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN


# Normalised boxes can overshoot the unit square slightly; pixel boxes never stay this small.
NORMALIZED_SCALE_LIMIT = 1.5


class BoundingBox(BaseModel):
    model_config = ConfigDict(extra="ignore")

    left: float
    top: float
    right: float
    bottom: float

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) != 4:
                raise ValueError("bounding box needs exactly 4 coordinates")
            left, top, right, bottom = value
            return {"left": left, "top": top, "right": right, "bottom": bottom}
        return value

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_normalized(self) -> bool:
        return max(self.left, self.top, self.right, self.bottom) <= NORMALIZED_SCALE_LIMIT

    def to_pixels(self, page_width: float, page_height: float) -> BoundingBox:
        if not self.is_normalized:
            return self.model_copy()
        return BoundingBox(
            left=self.left * page_width,
            top=self.top * page_height,
            right=self.right * page_width,
            bottom=self.bottom * page_height,
        )

    def to_normalized(self, page_width: float, page_height: float) -> BoundingBox:
        if self.is_normalized:
            return self.model_copy()
        if page_width <= 0 or page_height <= 0:
            raise ValueError("page dimensions must be positive")
        return BoundingBox(
            left=self.left / page_width,
            top=self.top / page_height,
            right=self.right / page_width,
            bottom=self.bottom / page_height,
        )

    def within_page(self, page_width: float | None = None, page_height: float | None = None) -> bool:
        """Check ordering and page bounds.

        Normalised boxes are checked against the unit square, so a slight
        overshoot such as ``right=1.05`` is reported. Pixel boxes need the
        page size, and are only checked for ordering without it.
        """
        if self.left > self.right or self.top > self.bottom:
            return False
        if self.left < 0 or self.top < 0:
            return False
        if self.is_normalized:
            return self.right <= 1.0 and self.bottom <= 1.0
        if page_width is None or page_height is None:
            return True
        return self.right <= page_width and self.bottom <= page_height


class Grounding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: int = Field(ge=0)
    box: BoundingBox


class Chunk(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: ChunkType = ChunkType.TEXT
    markdown: str = ""
    grounding: Grounding | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ChunkType(value)
        return value

    @property
    def page(self) -> int | None:
        return self.grounding.page if self.grounding else None


class Split(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    classification: str | None = Field(default=None, alias="class")
    identifier: str | None = None
    pages: list[int] = Field(default_factory=list)
    markdown: str = ""
    chunks: list[str] = Field(default_factory=list)


class ParseMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    filename: str | None = None
    page_count: int | None = None
    duration_ms: int | None = None
    credit_usage: float | None = None
    job_id: str | None = None
    version: str | None = None


class ParseResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    markdown: str = ""
    chunks: list[Chunk] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)
    metadata: ParseMetadata = Field(default_factory=ParseMetadata)

    def chunk_by_id(self, chunk_id: str) -> Chunk | None:
        for chunk in self.chunks:
            if chunk.id == chunk_id:
                return chunk
        return None

    def chunks_for_split(self, split: Split) -> list[Chunk]:
        index = {chunk.id: chunk for chunk in self.chunks}
        return [index[chunk_id] for chunk_id in split.chunks if chunk_id in index]

    def chunks_on_page(self, page: int) -> list[Chunk]:
        return [chunk for chunk in self.chunks if chunk.page == page]

    def chunks_of_type(self, chunk_type: ChunkType | str) -> list[Chunk]:
        wanted = ChunkType(chunk_type)
        return [chunk for chunk in self.chunks if chunk.type is wanted]

    def dangling_chunk_references(self) -> list[str]:
        known = {chunk.id for chunk in self.chunks}
        missing: list[str] = []
        for split in self.splits:
            for chunk_id in split.chunks:
                if chunk_id not in known and chunk_id not in missing:
                    missing.append(chunk_id)
        return missing

    def out_of_bounds_chunks(
        self, page_width: float | None = None, page_height: float | None = None
    ) -> list[Chunk]:
        return [
            chunk
            for chunk in self.chunks
            if chunk.grounding is not None and not chunk.grounding.box.within_page(page_width, page_height)
        ]
