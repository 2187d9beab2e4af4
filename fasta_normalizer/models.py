from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FastaRecord(BaseModel):
    header: str
    lines: List[str] = Field(default_factory=list)


class NormalizedFasta(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content_b64: str


class ReportSummary(BaseModel):
    records: int = 0
    sequence_lines: int = 0
    line_width: Optional[int] = Field(default=None, examples=[60])
    warnings: int = 0
    errors: int = 0
    deterministic: bool = True


class ReportItem(BaseModel):
    record: Optional[int] = None
    header: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class NormalizationReport(BaseModel):
    summary: ReportSummary
    normalizations: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[ReportItem] = Field(default_factory=list)
    errors: List[ReportItem] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    normalized_fasta: NormalizedFasta
    report: NormalizationReport

class HealthResponse(BaseModel):
    ok: bool = True
