"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edge (plan files, CLI) with self-documenting
  fields, without coupling the Core to any I/O library.
- Frozen models make an `OperationRequest` an immutable description of one
  intended side effect.

Note:
- These models describe *what* should happen, never *how*.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict


DEFAULT_BINARY_MODE = 0o750


class OperationKind(str, Enum):
    """Every side effect the dispatcher knows how to apply or simulate."""

    CREATE = "create"
    WRITE = "write"
    COPY = "copy"
    RENAME = "rename"
    REMOVE = "remove"
    REMOVE_ALL = "remove_all"
    MKDIR_ALL = "mkdir_all"
    APPEND = "append"
    DOWNLOAD = "download"
    GENERATE_PKI = "generate_pki"


# Extra fields each kind needs on top of `path`.
_REQUIRED_FIELDS: dict[OperationKind, tuple[str, ...]] = {
    OperationKind.CREATE: (),
    OperationKind.WRITE: ("content",),
    OperationKind.COPY: ("source_path",),
    OperationKind.RENAME: ("source_path",),
    OperationKind.REMOVE: (),
    OperationKind.REMOVE_ALL: (),
    OperationKind.MKDIR_ALL: (),
    OperationKind.APPEND: ("content",),
    OperationKind.DOWNLOAD: ("source",),
    OperationKind.GENERATE_PKI: (),
}


class SourceDescriptor(BaseModel):
    """A download source, optionally qualified with an archive member.

    Grammar: `SOURCE` or `SOURCE#MEMBER`. Only the first `#` splits; any
    later `#` belongs to the member path.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Fetch URL or local path of the artifact.")
    member: str | None = Field(
        default=None,
        description="Path inside the archive to extract (None => plain download).",
    )

    @classmethod
    def parse(cls, src: str) -> "SourceDescriptor":
        if "#" in src:
            url, member = src.split("#", 1)
            return cls(url=url, member=member)
        return cls(url=src)

    @property
    def is_archive(self) -> bool:
        return self.member is not None

    def __str__(self) -> str:
        return self.url if self.member is None else f"{self.url}#{self.member}"


class OperationRequest(BaseModel):
    """Immutable description of one intended side effect.

    Constructed and consumed within a single call (or read from a plan file);
    never persisted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: OperationKind = Field(..., description="Which primitive to run.")
    path: Path = Field(..., description="Target path (destination for copy/rename/download).")
    source_path: Path | None = Field(
        default=None,
        description="Old path for copy/rename.",
    )
    content: bytes | None = Field(
        default=None,
        description="Payload for write/append.",
    )
    mode: int | None = Field(
        default=None,
        ge=0,
        description="Permission bits (write with mode, download).",
    )
    source: str | None = Field(
        default=None,
        description="Download source descriptor (`SOURCE` or `SOURCE#MEMBER`).",
    )
    sans: tuple[str, ...] = Field(
        default=(),
        description="Subject alternative names for generate_pki.",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_octal_mode(cls, value: Any) -> Any:
        # Plan files spell modes the shell way: "0750" / "750" / "0o750".
        if isinstance(value, str):
            text = value.strip().lower().removeprefix("0o")
            return int(text, 8)
        return value

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "OperationRequest":
        missing = [name for name in _REQUIRED_FIELDS[self.kind] if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.kind.value} requires: {', '.join(missing)}")
        return self

    @property
    def descriptor(self) -> SourceDescriptor | None:
        if self.source is None:
            return None
        return SourceDescriptor.parse(self.source)


class Plan(BaseModel):
    """A list of operations to run, in order, through one Session."""

    model_config = ConfigDict(extra="ignore")

    operations: list[OperationRequest] = Field(
        default_factory=list,
        description="Operations executed sequentially; the first error stops the run.",
    )
