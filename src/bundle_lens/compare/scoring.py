"""Scoring a build-to-build change as positive, mixed or negative."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from bundle_lens.config import ChangeScoreConfig
from bundle_lens.types import ManifestReport

Verdict = Literal["positive", "mixed", "negative"]


@dataclass(slots=True)
class ComparisonMetrics:
    total_left: int
    total_right: int
    initial_left: int
    initial_right: int
    chunks_left: int
    chunks_right: int


@dataclass(slots=True)
class ChangeScore:
    score: float
    verdict: Verdict
    detail: dict[str, float] = field(default_factory=dict)


def collect_comparison_metrics(left: ManifestReport, right: ManifestReport) -> ComparisonMetrics:
    def total(report: ManifestReport) -> int:
        return report.summary.initial.total_bytes + report.summary.lazy.total_bytes

    return ComparisonMetrics(
        total_left=total(left),
        total_right=total(right),
        initial_left=left.summary.initial.total_bytes,
        initial_right=right.summary.initial.total_bytes,
        chunks_left=len(left.chunks),
        chunks_right=len(right.chunks),
    )


def _section_score(delta: int, weight: float) -> float:
    if delta < 0:
        return weight
    if delta == 0:
        return weight / 2
    return 0.0


def score_change(metrics: ComparisonMetrics, config: ChangeScoreConfig | None = None) -> ChangeScore:
    """Score a change from the left build to the right build.

    Each metric that shrank earns its full weight, an unchanged metric earns
    half of it and a regression earns nothing. The weights sum to 100 by
    default, so the score is the earned share in [0, 1].
    """

    cfg = config or ChangeScoreConfig()
    total_pts = _section_score(metrics.total_right - metrics.total_left, cfg.total_weight)
    initial_pts = _section_score(metrics.initial_right - metrics.initial_left, cfg.initial_weight)
    chunk_pts = _section_score(metrics.chunks_right - metrics.chunks_left, cfg.chunks_weight)

    max_points = cfg.total_weight + cfg.initial_weight + cfg.chunks_weight
    score = (total_pts + initial_pts + chunk_pts) / max_points if max_points else 0.0

    verdict: Verdict = "mixed"
    if score >= cfg.positive_threshold:
        verdict = "positive"
    elif score < cfg.negative_threshold:
        verdict = "negative"

    return ChangeScore(
        score=score,
        verdict=verdict,
        detail={"total": total_pts, "initial": initial_pts, "chunks": chunk_pts},
    )


def describe_score(result: ChangeScore) -> str:
    percentage = round(result.score * 100)
    improvements: list[str] = []
    if result.detail.get("total", 0) > 0:
        improvements.append("smaller total size")
    if result.detail.get("initial", 0) > 0:
        improvements.append("less initial code")
    if result.detail.get("chunks", 0) > 0:
        improvements.append("fewer chunks")

    if not improvements:
        return f"{percentage}% - No improvements detected"
    return f"{percentage}% ({' & '.join(improvements)})"
