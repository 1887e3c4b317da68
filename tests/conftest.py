from typing import Any

import pytest

from bundle_lens.manifest.model import Manifest, parse_manifest


def _edge(path: str, kind: str = "import-statement", **extra: Any) -> dict[str, Any]:
    return {"path": path, "kind": kind, **extra}


def build_app_metafile() -> dict[str, Any]:
    """A small application build.

    main.ts statically imports app.ts and lazily imports lazy.ts. util.ts is
    inlined (no output lists it) and deep.ts is only reachable through it.
    """

    return {
        "inputs": {
            "src/main.ts": {
                "bytes": 120,
                "format": "esm",
                "imports": [
                    _edge("src/app.ts", original="./app"),
                    _edge("src/lazy.ts", "dynamic-import", original="./lazy"),
                ],
            },
            "src/lazy.ts": {
                "bytes": 300,
                "imports": [
                    _edge("src/heavy.ts", original="./heavy"),
                    _edge("src/util.ts", original="./util"),
                ],
            },
            "src/app.ts": {
                "bytes": 200,
                "imports": [
                    _edge("src/util.ts", original="./util"),
                    _edge("react", external=True),
                ],
            },
            "src/util.ts": {"bytes": 50, "imports": [_edge("src/deep.ts", original="./deep")]},
            "src/deep.ts": {"bytes": 10, "imports": []},
            "src/heavy.ts": {"bytes": 4000, "imports": []},
            "src/orphan.ts": {"bytes": 5},
        },
        "outputs": {
            "dist/main.js": {
                "bytes": 1000,
                "entryPoint": "src/main.ts",
                "imports": [
                    _edge("dist/chunk-shared.js"),
                    _edge("dist/lazy-5f3a9c1d.js", "dynamic-import"),
                    _edge("dist/main.css"),
                    _edge("react", external=True),
                ],
                "inputs": {
                    "src/main.ts": {"bytesInOutput": 100},
                    "src/app.ts": {"bytesInOutput": 180},
                },
            },
            "dist/chunk-shared.js": {
                "bytes": 500,
                "imports": [],
                "inputs": {"src/shared.ts": {"bytesInOutput": 480}},
            },
            "dist/lazy-5f3a9c1d.js": {
                "bytes": 4200,
                "imports": [_edge("dist/chunk-shared.js")],
                "inputs": {
                    "src/lazy.ts": {"bytesInOutput": 280},
                    "src/heavy.ts": {"bytesInOutput": 3900},
                },
            },
            "dist/main.css": {"bytes": 64, "imports": [], "inputs": {}},
            "dist/main.js.map": {"bytes": 9000, "imports": [], "inputs": {}},
            "dist/server/render.js": {
                "bytes": 7000,
                "entryPoint": "src/server.ts",
                "imports": [],
                "inputs": {},
            },
        },
    }


@pytest.fixture
def app_metafile() -> dict[str, Any]:
    return build_app_metafile()


@pytest.fixture
def app_manifest() -> Manifest:
    return parse_manifest(build_app_metafile())
