"""Load datapack settings from TOML (e.g. datapack.toml).

Config file is looked up in order:
  1. Path in DATAPACK_CONFIG env var (if set)
  2. datapack.toml in the current working directory

Settings live under a ``[datapack]`` table. If no file is found, or the file
cannot be read, built-in defaults are used.

Example::

    [datapack]
    resolve_uri = "https://cn.dataone.org/cn/v2/resolve"
    keep_staging = true

    [datapack.namespaces]
    schema = "http://schema.org/"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

CONFIG_ENV_VAR = "DATAPACK_CONFIG"
CONFIG_FILE_NAME = "datapack.toml"


class DataPackConfig(BaseModel):
    """Settings shared by the resource map serializer and the bag builder."""

    model_config = ConfigDict(frozen=True)

    resolve_uri: str = Field(
        default="",
        description="Prefix that turns member identifiers into resolvable URIs. Empty leaves them bare.",
    )
    default_syntax: str = Field(default="rdfxml", description="Syntax used when none is requested.")
    staging_dir: Path | None = Field(
        default=None,
        description="Parent directory for bag staging trees. None uses the system temp directory.",
    )
    keep_staging: bool = Field(default=False, description="Keep the staging tree after a successful build.")
    bagit_version: str = Field(default="0.97")
    tag_file_encoding: str = Field(default="UTF-8")
    namespaces: dict[str, str] = Field(
        default_factory=dict,
        description="Extra prefix -> namespace IRI bindings for rendered resource maps.",
    )


def _default_config_paths() -> list[Path]:
    """Return paths to check for datapack.toml (first existing wins)."""
    paths: list[Path] = []
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    return paths


def load_config(path: Path | None = None) -> DataPackConfig:
    """Load datapack config from a TOML file.

    Args:
        path: Explicit file to read. When omitted the default lookup order is used.

    Returns:
        DataPackConfig built from the first readable ``[datapack]`` table, or
        the defaults if there is none.
    """
    candidates = [path] if path is not None else _default_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "rb") as f:
                data = tomllib.load(f)
        except (OSError, ValueError):
            continue
        section: Any = data.get("datapack")
        if not isinstance(section, dict):
            continue
        try:
            return DataPackConfig.model_validate(section)
        except PydanticValidationError:
            continue
    return DataPackConfig()
