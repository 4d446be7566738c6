"""Package members: the content units tracked by a data package."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from datapack.errors import ValidationError


class Member(BaseModel):
    """One content unit of a data package.

    A member carries its bytes in memory (``data``) or points at a file on
    disk (``file_path``), never both. Members are frozen; replacing one in a
    package means adding a new Member under the same identifier.

    Example:
        ```python
        csv = Member.from_bytes("do1", b"1,2,3\\n4,5,6")
        raw = Member.from_file("do2", "/data/raw.csv")
        ```
    """

    model_config = {"frozen": True}

    identifier: str = Field(description="Unique key of this member within its package.")
    data: bytes | None = Field(default=None, repr=False, description="In-memory content.")
    file_path: Path | None = Field(default=None, description="External file holding the content.")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "Member":
        if not self.identifier.strip():
            raise ValueError("identifier must be a non-empty string")
        if (self.data is None) == (self.file_path is None):
            raise ValueError("exactly one of data or file_path must be provided")
        return self

    @classmethod
    def from_bytes(cls, identifier: str, data: bytes | str) -> Member:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls._create(identifier=identifier, data=data)

    @classmethod
    def from_file(cls, identifier: str, file_path: str | Path) -> Member:
        return cls._create(identifier=identifier, file_path=Path(file_path))

    @classmethod
    def _create(cls, **kwargs) -> Member:
        try:
            return cls(**kwargs)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def has_external_file(self) -> bool:
        return self.file_path is not None

    def external_path(self) -> Path | None:
        return self.file_path

    def read_bytes(self) -> bytes:
        """Return the member content, reading the external file if there is one."""
        if self.file_path is not None:
            return self.file_path.read_bytes()
        return self.data  # type: ignore[return-value]
