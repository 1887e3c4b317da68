"""FastAPI entrypoint for manifest analysis and build comparison."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from bundle_lens.analysis.classify import analyse_manifest
from bundle_lens.analysis.entry import pick_initial_output
from bundle_lens.analysis.paths import find_inclusion_path, get_inclusion_path
from bundle_lens.analysis.reverse import find_reverse_dependencies, get_import_sources
from bundle_lens.compare.matcher import match_chunks_between_builds
from bundle_lens.compare.scoring import collect_comparison_metrics, describe_score, score_change
from bundle_lens.errors import InitialOutputNotFoundError, ManifestError
from bundle_lens.manifest.model import Manifest, parse_manifest
from bundle_lens.manifest.outputs import infer_entry_for_output
from bundle_lens.obs.tracing import QueryTraceStore, Timer

logger = logging.getLogger(__name__)


class ManifestRequest(BaseModel):
    manifest: dict[str, Any]
    preferred_entry: str | None = None


class InclusionPathRequest(BaseModel):
    manifest: dict[str, Any]
    target: str = Field(min_length=1)
    entry: str | None = None
    include_dynamic: bool = False


class TargetRequest(BaseModel):
    manifest: dict[str, Any]
    target: str = Field(min_length=1)


class CompareRequest(BaseModel):
    left: dict[str, Any]
    right: dict[str, Any]


app = FastAPI(title="Bundle Lens", version="0.1.0")

_trace_store = QueryTraceStore()


def _parse(payload: dict[str, Any]) -> Manifest:
    try:
        return parse_manifest(payload)
    except ManifestError as exc:
        logger.warning("Rejected manifest: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _entry_input(manifest: Manifest, preferred: str | None = None) -> str:
    initial_output = pick_initial_output(manifest, preferred)
    entry = None
    if initial_output is not None:
        entry = manifest.outputs[initial_output].entry_point or infer_entry_for_output(
            manifest, initial_output
        )
    if not entry:
        raise HTTPException(status_code=422, detail="Could not determine initial output")
    return entry


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "trace_count": len(_trace_store.list_recent(limit=1000)),
    }


@app.post("/entry")
def entry(request: ManifestRequest) -> dict[str, Any]:
    manifest = _parse(request.manifest)
    with Timer() as timer:
        initial_output = pick_initial_output(manifest, request.preferred_entry)
    _trace_store.create_record(query="entry", manifest=manifest, latency_ms=timer.elapsed_ms)
    return {"initial_output": initial_output}


@app.post("/analyse")
def analyse(request: ManifestRequest) -> dict[str, Any]:
    manifest = _parse(request.manifest)
    try:
        with Timer() as timer:
            report = analyse_manifest(manifest, request.preferred_entry)
    except InitialOutputNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    _trace_store.create_record(query="analyse", manifest=manifest, latency_ms=timer.elapsed_ms)
    return asdict(report)


@app.post("/inclusion-path")
def inclusion_path(request: InclusionPathRequest) -> dict[str, Any]:
    manifest = _parse(request.manifest)
    entry_input = request.entry or _entry_input(manifest)
    with Timer() as timer:
        result = find_inclusion_path(
            manifest,
            entry_input,
            request.target,
            include_dynamic=request.include_dynamic,
        )
    _trace_store.create_record(
        query="inclusion-path",
        manifest=manifest,
        latency_ms=timer.elapsed_ms,
        target=request.target,
        found=result.found,
    )
    return {"entry": entry_input, **asdict(result)}


@app.post("/inclusion-path/annotated")
def annotated_inclusion_path(request: TargetRequest) -> dict[str, Any]:
    manifest = _parse(request.manifest)
    try:
        with Timer() as timer:
            report = analyse_manifest(manifest)
            steps = get_inclusion_path(manifest, request.target, report.chunks, report.summary)
    except InitialOutputNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    _trace_store.create_record(
        query="inclusion-path/annotated",
        manifest=manifest,
        latency_ms=timer.elapsed_ms,
        target=request.target,
        found=bool(steps),
    )
    return {"steps": [asdict(step) for step in steps]}


@app.post("/importers")
def importers(request: TargetRequest) -> dict[str, Any]:
    manifest = _parse(request.manifest)
    try:
        with Timer() as timer:
            report = analyse_manifest(manifest)
            dependencies = find_reverse_dependencies(manifest, request.target)
            sources = get_import_sources(
                manifest, request.target, report.chunks, report.summary.initial.outputs
            )
    except InitialOutputNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    _trace_store.create_record(
        query="importers",
        manifest=manifest,
        latency_ms=timer.elapsed_ms,
        target=request.target,
    )
    return {
        "dependencies": [asdict(dep) for dep in dependencies],
        "sources": [asdict(source) for source in sources],
    }


@app.post("/compare")
def compare(request: CompareRequest) -> dict[str, Any]:
    left = _parse(request.left)
    right = _parse(request.right)
    try:
        with Timer() as timer:
            left_report = analyse_manifest(left)
            right_report = analyse_manifest(right)
            comparison = match_chunks_between_builds(left_report.chunks, right_report.chunks)
            change = score_change(collect_comparison_metrics(left_report, right_report))
    except InitialOutputNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    _trace_store.create_record(query="compare", manifest=right, latency_ms=timer.elapsed_ms)
    return {
        "comparison": asdict(comparison),
        "change": {**asdict(change), "description": describe_score(change)},
    }


@app.get("/traces")
def traces(limit: int = 20) -> dict[str, Any]:
    return {"items": [asdict(record) for record in _trace_store.list_recent(limit=limit)]}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str) -> dict[str, Any]:
    try:
        record = _trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics() -> dict[str, Any]:
    return _trace_store.summary()
