from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    """Read-only view over one of the scan JSON payloads (camelCase keys)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    @model_validator(mode='before')
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null fields fall back to the field default
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class DocumentMetadata(_Record):
    filename: str = ''


class ScannedDocument(_Record):
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    creation_time: datetime | None = None
    total_words: int = 0
    total_excluded: int = 0

    @field_validator('creation_time', mode='before')
    @classmethod
    def _parse_creation_time(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ScoreSummary(_Record):
    aggregated_score: float = 0
    identical_words: int = 0
    minor_changed_words: int = 0
    related_meaning_words: int = 0


class ScanScores(_Record):
    score: ScoreSummary = Field(default_factory=ScoreSummary)


class ScanResult(_Record):
    scanned_document: ScannedDocument = Field(default_factory=ScannedDocument)
    results: ScanScores = Field(default_factory=ScanScores)

    @property
    def score(self) -> ScoreSummary:
        return self.results.score


class WordSpans(_Record):
    starts: list[int] = Field(default_factory=list)
    lengths: list[int] = Field(default_factory=list)


class SpanText(_Record):
    words: WordSpans = Field(default_factory=WordSpans)


class PatternStatistics(_Record):
    ai_count: list[float] = Field(default_factory=list)
    human_count: list[float] = Field(default_factory=list)


class AiPatterns(_Record):
    text: SpanText = Field(default_factory=SpanText)
    statistics: PatternStatistics = Field(default_factory=PatternStatistics)


class AiExplain(_Record):
    patterns: AiPatterns = Field(default_factory=AiPatterns)


class AiMatch(_Record):
    text: SpanText = Field(default_factory=SpanText)


class AiResultEntry(_Record):
    matches: list[AiMatch] = Field(default_factory=list)


class PhraseSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    length: int
    ai_count: float
    human_count: float


class AiDetectionResult(_Record):
    explain: AiExplain = Field(default_factory=AiExplain)
    results: list[AiResultEntry] = Field(default_factory=list)

    @property
    def starts(self) -> list[int]:
        return list(self.explain.patterns.text.words.starts)

    @property
    def lengths(self) -> list[int]:
        return list(self.explain.patterns.text.words.lengths)

    @property
    def total_word_count(self) -> int:
        if not self.results or not self.results[0].matches:
            return 0
        lengths = self.results[0].matches[0].text.words.lengths
        if not lengths:
            return 0
        return int(lengths[0])

    def spans(self) -> list[PhraseSpan]:
        words = self.explain.patterns.text.words
        stats = self.explain.patterns.statistics
        sizes = {len(words.starts), len(words.lengths), len(stats.ai_count), len(stats.human_count)}
        if len(sizes) > 1:
            logger.warning(
                'AI pattern arrays differ in length (starts=%s lengths=%s aiCount=%s humanCount=%s); '
                'extra entries are ignored.',
                len(words.starts),
                len(words.lengths),
                len(stats.ai_count),
                len(stats.human_count),
            )
        return [
            PhraseSpan(start=int(start), length=int(length), ai_count=float(ai), human_count=float(human))
            for start, length, ai, human in zip(words.starts, words.lengths, stats.ai_count, stats.human_count)
        ]


class CrawledText(_Record):
    value: str = ''


class CrawledVersion(_Record):
    text: CrawledText = Field(default_factory=CrawledText)


class ReportStatus(str, Enum):
    queued = 'queued'
    building_plagiarism = 'building_plagiarism'
    annotating = 'annotating'
    merging_plagiarism = 'merging_plagiarism'
    building_ai = 'building_ai'
    merging_final = 'merging_final'
    completed = 'completed'
    failed = 'failed'


class ReportArtifacts(BaseModel):
    part1_path: str | None = None
    header_added_path: str | None = None
    plag_path: str | None = None
    part2_path: str | None = None
    final_report_path: str | None = None


class ReportJob(BaseModel):
    user_id: str
    scan_id: str

    status: ReportStatus = ReportStatus.queued
    message: str = 'Report queued.'
    error: str | None = None
    failed_stage: str | None = None
    error_code: int | None = None
    warnings: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    artifacts: ReportArtifacts = Field(default_factory=ReportArtifacts)
