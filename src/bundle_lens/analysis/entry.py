"""Heuristic selection of the application's first-loaded output."""

from __future__ import annotations

import logging
import re

from bundle_lens.config import ClassifierConfig, EntrySelectionConfig
from bundle_lens.manifest.model import Manifest
from bundle_lens.manifest.outputs import get_entry_outputs

logger = logging.getLogger(__name__)

_MAIN_PATTERN = re.compile(r"^main(\.|$)")
_POLYFILLS_PATTERN = re.compile(r"polyfills", flags=re.IGNORECASE)
_STYLES_PATTERN = re.compile(r"styles?", flags=re.IGNORECASE)
_TEST_PATTERN = re.compile(r"(spec|test)\.", flags=re.IGNORECASE)


def _basename(path: str) -> str:
    parts = path.replace("\\", "/").split("/")
    return parts[-1] or path


def pick_initial_output(
    manifest: Manifest,
    preferred_entry_input: str | None = None,
    *,
    config: EntrySelectionConfig | None = None,
    classifier: ClassifierConfig | None = None,
) -> str | None:
    """Pick the output most likely to be the bundle a browser loads first.

    Ranking process:
    1. Candidates are browser script outputs that carry an entry point.
    2. An exact `preferred_entry_input` match wins outright.
    3. Candidates imported statically by another candidate are dropped from
       the ranking pool, unless that would empty it.
    4. Each remaining candidate is scored on its entry file name plus the
       number of candidates it reaches through static imports.
    5. Highest score wins, ties go to the lexicographically smallest path.

    Returns None when the manifest has no candidate at all.
    """

    cfg = config or EntrySelectionConfig()
    candidates = get_entry_outputs(manifest, classifier)
    if not candidates:
        return None

    if preferred_entry_input:
        for candidate in candidates:
            if manifest.outputs[candidate].entry_point == preferred_entry_input:
                return candidate

    candidate_set = set(candidates)
    graph: dict[str, list[str]] = {}
    in_degree: dict[str, int] = {candidate: 0 for candidate in candidates}
    for candidate in candidates:
        edges = [
            edge.path
            for edge in manifest.outputs[candidate].imports
            if not edge.external and not edge.is_dynamic and edge.path in candidate_set
        ]
        graph[candidate] = edges
        for target in edges:
            in_degree[target] += 1

    roots = [candidate for candidate in candidates if in_degree[candidate] == 0]
    ranking_pool = roots or candidates

    scored = [
        (-_score_candidate(manifest, candidate, graph, cfg), candidate)
        for candidate in ranking_pool
    ]
    scored.sort()
    chosen = scored[0][1]
    logger.debug(
        "Picked initial output %s (score %d) from %d candidates",
        chosen,
        -scored[0][0],
        len(candidates),
    )
    return chosen


def _score_candidate(
    manifest: Manifest,
    candidate: str,
    graph: dict[str, list[str]],
    cfg: EntrySelectionConfig,
) -> int:
    name = _basename(manifest.outputs[candidate].entry_point or "")
    score = 0
    if _MAIN_PATTERN.search(name):
        score += cfg.main_bonus
    if _POLYFILLS_PATTERN.search(name):
        score -= cfg.polyfills_penalty
    if _STYLES_PATTERN.search(name):
        score -= cfg.styles_penalty
    if _TEST_PATTERN.search(name):
        score -= cfg.test_penalty
    return score + _reachable_count(candidate, graph)


def _reachable_count(start: str, graph: dict[str, list[str]]) -> int:
    seen: set[str] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        for target in graph.get(node, []):
            if target not in seen:
                seen.add(target)
                stack.append(target)
    return len(seen)
