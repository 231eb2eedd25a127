"""Compiler configuration for h5pforge.

Settings are read from keyword arguments, ``H5PFORGE_``-prefixed environment
variables, or a ``.env`` file, in that order of precedence.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HUB_URL = "https://api.h5p.org/v1/"
DEFAULT_CACHE_DIR = Path("content-type-cache")

AIProviderName = Literal["auto", "claude", "gemini", "none"]


class CompilerSettings(BaseSettings):
    """Runtime settings shared by the compiler, library store and CLI.

    Example:
        >>> # From environment (H5PFORGE_CACHE_DIR, H5PFORGE_HUB_URL, ...)
        >>> settings = CompilerSettings()
        >>>
        >>> # Explicit
        >>> settings = CompilerSettings(cache_dir=Path("/tmp/h5p-cache"), ai_provider="none")
    """

    model_config = SettingsConfigDict(
        env_prefix="H5PFORGE_",
        env_file=".env",
        extra="ignore",
    )

    cache_dir: Path = Field(
        default=DEFAULT_CACHE_DIR,
        description="Directory holding cached library bundles",
    )
    hub_url: str = Field(
        default=DEFAULT_HUB_URL,
        description="Base URL of the H5P Hub API (must end with '/')",
    )
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="HTTP timeout for a single library download",
    )
    book_library: str = Field(
        default="H5P.InteractiveBook 1.11",
        description="Root library for book packages",
    )
    ai_provider: AIProviderName = Field(
        default="auto",
        description="AI provider used by AI-capable handlers",
    )
    base_path: Path | None = Field(
        default=None,
        description="Directory for resolving relative media paths",
    )
    check_semantics: bool = Field(
        default=True,
        description="Check content against each library's semantics.json before packaging",
    )
    verbose: bool = Field(default=False, description="Verbose progress logging")
