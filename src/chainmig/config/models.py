"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, chainmig.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chainmig.domain.schema import DEFAULT_BLOCK_LIMIT, DEFAULT_PACKAGE_LIMIT

DEFAULT_AUX_FILES: tuple[str, ...] = (
    "controller-log4rs.yaml",
    "storage-log4rs.yaml",
    "executor-log4rs.yaml",
    "kms-log4rs.yaml",
    "kms.db",
)
DEFAULT_DATA_DIRS: tuple[str, ...] = ("chain_data", "data", "logs")


class LimitsConfig(BaseModel):
    """[limits] section — constants introduced by the new schema."""

    model_config = {"frozen": True}

    block_limit: int = Field(default=DEFAULT_BLOCK_LIMIT, gt=0)
    package_limit: int = Field(default=DEFAULT_PACKAGE_LIMIT, gt=0)


class PkiConfig(BaseModel):
    """[pki] section."""

    model_config = {"frozen": True}

    validity_days: int = Field(default=3650, gt=0)
    max_workers: int = Field(default=1, ge=1)


class FilesConfig(BaseModel):
    """[files] section: what is carried over from each legacy node dir."""

    model_config = {"frozen": True}

    aux_files: list[str] = Field(default_factory=lambda: list(DEFAULT_AUX_FILES))
    data_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_DATA_DIRS))
