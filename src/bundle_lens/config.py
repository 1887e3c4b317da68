"""Configuration models for the manifest analyser."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ClassifierConfig(BaseModel):
    """Decides which outputs count as browser-relevant artifacts."""

    script_pattern: str = r"\.(?:js|cjs)(\?.*)?$"
    stylesheet_pattern: str = r"\.css$"
    source_map_suffix: str = ".map"
    server_patterns: tuple[str, ...] = (
        r"(^|/)server(/?|$)",
        r"\.server\.",
        r"server\.(mjs|js)(\?.*)?$",
    )


class EntrySelectionConfig(BaseModel):
    """Scores used when ranking candidate entry outputs."""

    main_bonus: int = Field(default=100, ge=0)
    polyfills_penalty: int = Field(default=80, ge=0)
    styles_penalty: int = Field(default=80, ge=0)
    test_penalty: int = Field(default=50, ge=0)


class MatchingConfig(BaseModel):
    """Thresholds for pairing chunks across two builds."""

    min_match_score: int = Field(default=40, ge=0, le=100)
    good_match_score: int = Field(default=65, ge=0, le=100)

    @model_validator(mode="after")
    def check_order(self) -> "MatchingConfig":
        if self.good_match_score < self.min_match_score:
            raise ValueError("good_match_score must be >= min_match_score")
        return self


class ChangeScoreConfig(BaseModel):
    """Weights and verdict cut-offs for scoring a build-to-build change."""

    total_weight: float = Field(default=40.0, ge=0.0)
    initial_weight: float = Field(default=40.0, ge=0.0)
    chunks_weight: float = Field(default=20.0, ge=0.0)
    positive_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    negative_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
