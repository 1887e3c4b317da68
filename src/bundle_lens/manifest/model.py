"""Typed view over an esbuild-style metafile."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    WrapValidator,
    field_validator,
    model_validator,
)

from bundle_lens.errors import ManifestError
from bundle_lens.types import ModuleDetails

IMPORT_STATEMENT = "import-statement"
DYNAMIC_IMPORT = "dynamic-import"
REQUIRE_CALL = "require-call"
REQUIRE_RESOLVE = "require-resolve"
ENTRY_POINT = "entry-point"
INTERNAL = "internal"


def _or_default(default: Any) -> Callable[[Any, Any], Any]:
    """Read an unusable nested value as `default` instead of failing the parse."""

    def validate(value: Any, handler: Any) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return default

    return validate


Size = Annotated[int, Field(ge=0), WrapValidator(_or_default(0))]
OptionalText = Annotated[str | None, WrapValidator(_or_default(None))]
Flag = Annotated[bool, WrapValidator(_or_default(False))]


def _records_only(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return value
    return {key: record for key, record in value.items() if isinstance(record, Mapping)}


def _usable_edges(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [
        edge for edge in value if isinstance(edge, Mapping) and isinstance(edge.get("path"), str)
    ]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ImportEdge(_Record):
    """An import edge between two inputs or two outputs.

    `kind` stays None when the manifest omits it; such an edge is neither
    dynamic nor eager.
    """

    path: str
    kind: OptionalText = None
    external: Flag = False
    original: OptionalText = None

    @property
    def is_dynamic(self) -> bool:
        return self.kind == DYNAMIC_IMPORT


class InputRecord(_Record):
    """A source module consumed by the bundler."""

    bytes: Size = 0
    imports: list[ImportEdge] = Field(default_factory=list)
    format: OptionalText = None
    loader: OptionalText = None

    @model_validator(mode="before")
    @classmethod
    def null_imports_as_absent(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "imports" in data and data["imports"] is None:
            return {key: value for key, value in data.items() if key != "imports"}
        return data

    @field_validator("imports", mode="before")
    @classmethod
    def skip_bad_edges(cls, value: Any) -> Any:
        return _usable_edges(value)

    @property
    def has_imports_list(self) -> bool:
        return "imports" in self.model_fields_set


class OutputInputContribution(_Record):
    bytes: Size = 0
    bytes_in_output: Size = Field(default=0, alias="bytesInOutput")


class OutputRecord(_Record):
    """A file emitted by the bundler."""

    bytes: Size = 0
    entry_point: OptionalText = Field(default=None, alias="entryPoint")
    imports: list[ImportEdge] = Field(default_factory=list)
    inputs: dict[str, OutputInputContribution] = Field(default_factory=dict)

    @field_validator("imports", mode="before")
    @classmethod
    def skip_bad_edges(cls, value: Any) -> Any:
        return _usable_edges(value)

    @field_validator("inputs", mode="before")
    @classmethod
    def contributions_only(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return {}
        return _records_only(value)


class Manifest(_Record):
    """The full input/output graph.

    Treated as immutable for the lifetime of an analysis session; every
    engine function reads from it and never writes back. Entries that are
    not objects are left out, like any other dangling reference.
    """

    inputs: dict[str, InputRecord]
    outputs: dict[str, OutputRecord]

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def records_only(cls, value: Any) -> Any:
        return _records_only(value)




def parse_manifest(payload: Any) -> Manifest:
    """Validate raw JSON data and build a `Manifest`.

    Only the top-level shape is checked strictly: the payload must be an
    object carrying both `inputs` and `outputs`, each an object. Anything
    unusable below that is read as missing: sizes become 0, unknown text
    fields None, and edges without a path are skipped.

    Raises:
        ManifestError: if the payload is not a manifest.
    """

    if isinstance(payload, Manifest):
        return payload
    if not isinstance(payload, Mapping) or "inputs" not in payload or "outputs" not in payload:
        raise ManifestError("Invalid esbuild metafile JSON")
    try:
        return Manifest.model_validate(
            {"inputs": payload["inputs"], "outputs": payload["outputs"]}
        )
    except ValidationError as exc:
        raise ManifestError(f"Invalid esbuild metafile JSON: {exc.error_count()} bad field(s)") from exc


def load_manifest(path: str | Path) -> Manifest:
    """Read and parse a manifest file from disk."""

    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{file_path} is not valid JSON: {exc.msg}") from exc
    return parse_manifest(payload)


def get_module_details(manifest: Manifest, input_path: str) -> ModuleDetails | None:
    record = manifest.inputs.get(input_path)
    if record is None:
        return None
    return ModuleDetails(
        bytes=record.bytes,
        format=record.format,
        loader=record.loader,
        imports_count=len(record.imports),
    )


def get_module_imports(manifest: Manifest, input_path: str) -> list[str] | None:
    """Return the import targets of a module.

    None when the module is unknown or its record has no `imports` list.
    """

    record = manifest.inputs.get(input_path)
    if record is None or not record.has_imports_list:
        return None
    return [edge.path for edge in record.imports]
