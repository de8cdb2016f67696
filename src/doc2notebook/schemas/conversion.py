"""Conversion result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ConversionStage(str, Enum):
    """Stages a document passes through during conversion."""

    START = "start"
    SEGMENTING = "segmenting"
    CLASSIFYING = "classifying"
    EMITTING = "emitting"
    ERROR_REPORT = "error-report"
    DONE = "done"


class PageError(BaseModel):
    """Recoverable errors collected while generating one page."""

    page_id: str
    title: str
    messages: list[str]


class ConversionResult(BaseModel):
    """Outcome of converting one document."""

    source: str
    notebook_ids: list[str] = Field(default_factory=list)
    section_ids: list[str] = Field(default_factory=list)
    page_ids: list[str] = Field(default_factory=list)
    toc_page_ids: list[str] = Field(default_factory=list)
    error_page_id: str | None = None
    page_errors: list[PageError] = Field(default_factory=list)
    stage: ConversionStage = ConversionStage.START


class DocumentFailure(BaseModel):
    """A document that could not be converted."""

    source: str
    error_type: str
    message: str


class BatchReport(BaseModel):
    """Outcome of a batch run."""

    converted: list[ConversionResult] = Field(default_factory=list)
    failed: list[DocumentFailure] = Field(default_factory=list)
    not_converted: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.not_converted
