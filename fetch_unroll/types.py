"""Shared Pydantic models: immutable option bundles for each pipeline stage."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

VERSION = "0.4.0"
DEFAULT_MAX_REDIRECTS = 20


class TransportOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)
    timeout: float = Field(default=60.0, gt=0)
    user_agent: str = f"fetch-unroll/{VERSION}"


class StripPolicy(BaseModel):
    """How many leading path components to drop from each entry.

    Attributes
    ----------
    count: int
        Number of leading components to strip (0 disables stripping).
    when_alone: bool
        Only strip as deep as the common ancestor shared by every entry.
    """

    model_config = ConfigDict(frozen=True)

    count: int = Field(default=0, ge=0)
    when_alone: bool = False


class SaveOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    create_dest_path: bool = True
    force_overwrite: bool = True
    fix_invalid_dest: bool = True
    cleanup_on_error: bool = True


class UnrollOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    create_dest_path: bool = True
    cleanup_dest_dir: bool = True
    fix_invalid_dest: bool = True
    cleanup_on_error: bool = True
    strip_components: int = Field(default=0, ge=0)
    strip_when_alone: bool = False

    @property
    def strip_policy(self) -> StripPolicy:
        return StripPolicy(count=self.strip_components, when_alone=self.strip_when_alone)
