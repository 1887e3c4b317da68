import random
from typing import Any

import pytest

from bundle_lens.analysis.classify import classify_chunks_from_initial, classify_initial
from bundle_lens.analysis.entry import pick_initial_output
from bundle_lens.analysis.paths import find_inclusion_path
from bundle_lens.compare.matcher import calculate_chunk_similarity, match_chunks_between_builds
from bundle_lens.config import MatchingConfig
from bundle_lens.manifest.model import Manifest, parse_manifest
from bundle_lens.manifest.outputs import compute_all_output_summaries

KINDS = ["import-statement", "import-statement", "require-call", "dynamic-import"]


def _random_metafile(seed: int, size: int = 25) -> dict[str, Any]:
    rng = random.Random(seed)
    inputs: dict[str, Any] = {}
    outputs: dict[str, Any] = {}
    modules = [f"src/m{i}.ts" for i in range(size)]
    files = [f"dist/out{i}.js" for i in range(size)]

    for module in modules:
        targets = rng.sample(modules, k=rng.randint(0, 3))
        inputs[module] = {
            "bytes": rng.randint(1, 500),
            "imports": [{"path": t, "kind": rng.choice(KINDS)} for t in targets],
        }

    for index, file in enumerate(files):
        targets = rng.sample(files, k=rng.randint(0, 3))
        record: dict[str, Any] = {
            "bytes": rng.randint(1, 5000),
            "imports": [{"path": t, "kind": rng.choice(KINDS)} for t in targets],
            "inputs": {m: {"bytesInOutput": 1} for m in rng.sample(modules, k=rng.randint(0, 4))},
        }
        if index < 3:
            record["entryPoint"] = modules[index]
        outputs[file] = record
    outputs["dist/out0.js"]["imports"].append({"path": "lodash", "kind": "import-statement", "external": True})
    return {"inputs": inputs, "outputs": outputs}


def _reversed(metafile: dict[str, Any]) -> Manifest:
    return parse_manifest(
        {
            "inputs": dict(reversed(list(metafile["inputs"].items()))),
            "outputs": dict(reversed(list(metafile["outputs"].items()))),
        }
    )


SEEDS = [1, 7, 42, 1234]


@pytest.mark.parametrize("seed", SEEDS)
def test_chunk_walk_partitions_reachable_outputs(seed: int) -> None:
    manifest = parse_manifest(_random_metafile(seed))
    initial_output = pick_initial_output(manifest)
    assert initial_output is not None

    result = classify_chunks_from_initial(manifest, initial_output)
    initial = [chunk.output_file for chunk in result.initial_chunks]
    lazy = [chunk.output_file for chunk in result.lazy]

    assert not set(initial) & set(lazy)
    assert initial_output not in initial
    assert initial_output not in lazy
    assert len(initial) == len(set(initial))
    assert len(lazy) == len(set(lazy))
    assert all(file in manifest.outputs for file in initial + lazy)
    sizes = [chunk.bytes for chunk in result.initial_chunks]
    assert sizes == sorted(sizes, reverse=True)


@pytest.mark.parametrize("seed", SEEDS)
def test_load_split_is_disjoint_and_starts_at_initial(seed: int) -> None:
    manifest = parse_manifest(_random_metafile(seed))
    initial_output = pick_initial_output(manifest)
    assert initial_output is not None

    initial, lazy = classify_initial(manifest, initial_output)

    assert initial[0] == initial_output
    assert not set(initial) & set(lazy)


@pytest.mark.parametrize("seed", SEEDS)
def test_entry_pick_ignores_manifest_order(seed: int) -> None:
    metafile = _random_metafile(seed)

    assert pick_initial_output(parse_manifest(metafile)) == pick_initial_output(_reversed(metafile))


@pytest.mark.parametrize("seed", SEEDS)
@pytest.mark.parametrize("include_dynamic", [False, True])
def test_inclusion_paths_follow_real_edges(seed: int, include_dynamic: bool) -> None:
    manifest = parse_manifest(_random_metafile(seed))

    for target in manifest.inputs:
        result = find_inclusion_path(
            manifest, "src/m0.ts", target, include_dynamic=include_dynamic
        )
        if not result.found:
            assert result.path == []
            continue
        if target == "src/m0.ts":
            assert result.path == []
            continue

        assert result.path[0].from_module == "src/m0.ts"
        assert result.path[-1].to_module == target
        for previous, step in zip(result.path, result.path[1:]):
            assert previous.to_module == step.from_module
        for step in result.path:
            edges = manifest.inputs[step.from_module].imports
            assert any(e.path == step.to_module and e.kind == step.kind for e in edges)
            if not include_dynamic:
                assert step.kind != "dynamic-import"
        visited = [result.path[0].from_module] + [step.to_module for step in result.path]
        assert len(visited) == len(set(visited))


@pytest.mark.parametrize("seed", SEEDS)
def test_eager_paths_are_never_longer_than_needed(seed: int) -> None:
    manifest = parse_manifest(_random_metafile(seed))

    for target in manifest.inputs:
        eager = find_inclusion_path(manifest, "src/m0.ts", target)
        any_kind = find_inclusion_path(manifest, "src/m0.ts", target, include_dynamic=True)
        if eager.found:
            assert any_kind.found
            assert len(any_kind.path) <= len(eager.path)


@pytest.mark.parametrize("seed", SEEDS)
def test_chunk_matching_invariants(seed: int) -> None:
    left = compute_all_output_summaries(parse_manifest(_random_metafile(seed)))
    right = compute_all_output_summaries(parse_manifest(_random_metafile(seed + 1)))
    config = MatchingConfig()

    comparison = match_chunks_between_builds(left, right, config)

    left_used = [m.left_chunk.output_file for m in comparison.matched_chunks]
    right_used = [m.right_chunk.output_file for m in comparison.matched_chunks]
    assert len(left_used) == len(set(left_used))
    assert len(right_used) == len(set(right_used))
    assert len(left_used) + len(comparison.unmatched_left) == len(left)
    assert len(right_used) + len(comparison.unmatched_right) == len(right)
    for match in comparison.matched_chunks:
        assert match.similarity_score >= config.min_match_score
        expected = "good" if match.similarity_score >= config.good_match_score else "weak"
        assert match.match_type == expected


@pytest.mark.parametrize("seed", SEEDS)
def test_chunk_matching_ignores_input_order(seed: int) -> None:
    left = compute_all_output_summaries(parse_manifest(_random_metafile(seed)))
    right = compute_all_output_summaries(parse_manifest(_random_metafile(seed + 1)))

    def pairs(lhs: list, rhs: list) -> set[tuple[str, str, int]]:
        comparison = match_chunks_between_builds(lhs, rhs)
        return {
            (m.left_chunk.output_file, m.right_chunk.output_file, m.similarity_score)
            for m in comparison.matched_chunks
        }

    assert pairs(left, right) == pairs(list(reversed(left)), list(reversed(right)))


@pytest.mark.parametrize("seed", SEEDS)
def test_similarity_is_bounded_and_symmetric(seed: int) -> None:
    left = compute_all_output_summaries(parse_manifest(_random_metafile(seed)))
    right = compute_all_output_summaries(parse_manifest(_random_metafile(seed + 1)))

    for a in left:
        assert calculate_chunk_similarity(a, a) == 100
        for b in right:
            score = calculate_chunk_similarity(a, b)
            assert 0 <= score <= 100
            assert score == calculate_chunk_similarity(b, a)
