from bundle_lens.analysis.classify import analyse_manifest
from bundle_lens.analysis.reverse import (
    find_reverse_dependencies,
    get_chunks_created_by_file,
    get_import_sources,
)
from bundle_lens.analysis.search import filter_chunks, find_chunks_with_search_term
from bundle_lens.manifest.model import Manifest


def test_reverse_dependencies_in_input_order(app_manifest: Manifest) -> None:
    dependencies = find_reverse_dependencies(app_manifest, "src/util.ts")

    assert [dep.importer for dep in dependencies] == ["src/lazy.ts", "src/app.ts"]
    assert all(dep.kind == "import-statement" for dep in dependencies)
    assert dependencies[0].original == "./util"


def test_reverse_dependencies_of_external_package(app_manifest: Manifest) -> None:
    dependencies = find_reverse_dependencies(app_manifest, "react")

    assert len(dependencies) == 1
    assert dependencies[0].importer == "src/app.ts"
    assert dependencies[0].external


def test_nothing_imports_the_entry(app_manifest: Manifest) -> None:
    assert find_reverse_dependencies(app_manifest, "src/main.ts") == []


def test_import_sources_put_initial_importers_first(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    sources = get_import_sources(
        app_manifest, "src/util.ts", report.chunks, report.summary.initial.outputs
    )

    assert [source.importer for source in sources] == ["src/app.ts", "src/lazy.ts"]
    assert sources[0].chunk_type == "initial"
    assert sources[0].chunk_output_file == "dist/main.js"
    assert sources[0].chunk_size == 1000
    assert sources[1].chunk_type == "lazy"
    assert sources[1].chunk_output_file == "dist/lazy-5f3a9c1d.js"


def test_import_sources_without_chunk_are_lazy(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    sources = get_import_sources(
        app_manifest, "src/deep.ts", report.chunks, report.summary.initial.outputs
    )

    assert len(sources) == 1
    assert sources[0].importer == "src/util.ts"
    assert sources[0].chunk_type == "lazy"
    assert sources[0].chunk_output_file is None
    assert sources[0].chunk_size is None


def test_dynamic_import_flag_on_sources(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    sources = get_import_sources(
        app_manifest, "src/lazy.ts", report.chunks, report.summary.initial.outputs
    )

    assert len(sources) == 1
    assert sources[0].is_dynamic_import
    assert sources[0].import_statement == "./lazy"


def test_chunks_created_by_dynamic_imports(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    created = get_chunks_created_by_file(app_manifest, "src/main.ts", report.chunks)

    assert [item.chunk.output_file for item in created] == ["dist/lazy-5f3a9c1d.js"]
    assert created[0].dynamic_import_path == "src/lazy.ts"
    assert created[0].import_statement == "./lazy"
    assert get_chunks_created_by_file(app_manifest, "src/app.ts", report.chunks) == []
    assert get_chunks_created_by_file(app_manifest, "src/missing.ts", report.chunks) == []


def test_search_is_case_insensitive(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    found = find_chunks_with_search_term(report.chunks, "HEAVY")

    assert [chunk.output_file for chunk in found] == ["dist/lazy-5f3a9c1d.js"]
    assert find_chunks_with_search_term(report.chunks, "") == []


def test_filter_chunks_by_load_type(app_manifest: Manifest) -> None:
    report = analyse_manifest(app_manifest)

    initial_only = filter_chunks(report.chunks, "", {"initial": True, "lazy": False}, report.summary)
    assert [chunk.output_file for chunk in initial_only] == [
        "dist/main.js",
        "dist/chunk-shared.js",
        "dist/main.css",
    ]

    lazy_app = filter_chunks(report.chunks, "app", {"initial": False, "lazy": True}, report.summary)
    assert lazy_app == []

    both = filter_chunks(report.chunks, "src/", {"initial": True, "lazy": True}, report.summary)
    assert [chunk.output_file for chunk in both] == [
        "dist/lazy-5f3a9c1d.js",
        "dist/main.js",
        "dist/chunk-shared.js",
    ]
