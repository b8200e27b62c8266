# === FILE: blog_migrator/config.py ===
"""
Loading and validation of BlogMigrator configuration.
Pydantic describes the schema; every former hardcoded crawler variant
becomes one named ``CrawlTarget`` profile.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union
from urllib.parse import urlsplit

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from blog_migrator.logger import DEFAULT_FORMAT


class CrawlTarget(BaseModel):
    """One crawl profile: seed index pages plus how to treat their host."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    index_urls: List[HttpUrl] = Field(..., min_length=1, description="Seed blog index pages.")
    max_pages: int = Field(10, ge=1, description="Page-visit budget for link discovery.")
    gated_host_suffix: str = Field(
        ".preview.octanesites.com", description="Hosts ending with this need the site password."
    )
    password: Optional[str] = Field(None, description="Shared password of the gated preview host.")
    content_marker: str = Field(
        "/blog/", min_length=1, description="Path segment every post URL on a gated host contains."
    )
    homepage_url: Optional[HttpUrl] = Field(
        None, description="Site root used to collect navigation links; derived when omitted."
    )

    @field_validator("index_urls", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list):
            return [u.rstrip("/") if isinstance(u, str) else u for u in v]
        return v

    @model_validator(mode="after")
    def _check_password(self) -> CrawlTarget:
        if any(self.requires_auth(u) for u in self.seed_urls) and not self.password:
            raise ValueError("password is required when a seed URL is on a gated host")
        return self

    @property
    def seed_urls(self) -> List[str]:
        # HttpUrl re-adds "/" to bare origins, keep the configured spelling
        return [str(u).rstrip("/") for u in self.index_urls]

    @property
    def is_gated(self) -> bool:
        return self.requires_auth(self.seed_urls[0])

    def requires_auth(self, url: str) -> bool:
        """True if *url* lives on a password-gated preview host."""
        host = urlsplit(url).hostname or ""
        suffix = self.gated_host_suffix.lower()
        return bool(suffix) and (host.endswith(suffix) or host == suffix.lstrip("."))

    def resolved_homepage(self) -> str:
        """Site root whose links count as navigation rather than posts."""
        if self.homepage_url is not None:
            return str(self.homepage_url)
        seed = self.seed_urls[0]
        parts = urlsplit(seed)
        if self.is_gated:
            marker = "/" + self.content_marker.strip("/")
            cut = seed.split(marker, 1)[0]
            return cut if cut != seed else f"{parts.scheme}://{parts.netloc}"
        return f"{parts.scheme}://{parts.netloc}"


class MigratorConfig(BaseModel):
    """Settings for one BlogMigrator run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field("Mozilla/5.0", min_length=1, description="User-Agent header.")
    timeout: float = Field(30.0, gt=0, description="Timeout of a single request (seconds).")
    crawl_deadline: Optional[float] = Field(
        None, gt=0, description="Deadline for the whole crawl (seconds)."
    )
    concurrency: int = Field(4, ge=1, le=16, description="Parallel page extractions.")
    max_attempts: int = Field(3, ge=1, description="Fetch attempts per post page.")
    retry_delay: float = Field(2.0, ge=0, description="Pause between attempts (seconds).")
    output_dir: Path = Field(Path("CSV Files"), description="Where crawl CSV files go.")
    compare_dir: Path = Field(Path("Compared CSV"), description="Where unmatched rows go.")
    summary_dir: Path = Field(
        Path("Comparison Summaries"), description="Where comparison summaries go."
    )
    profiles: Dict[str, CrawlTarget] = Field(..., min_length=1, description="Crawl profiles.")
    default_profile: Optional[str] = Field(None, description="Profile used when none is given.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Level of the BlogMigrator logger."
    )
    log_file: Optional[Path] = Field(None, description="Rotating log file, stderr only if unset.")
    log_format: str = Field(DEFAULT_FORMAT, min_length=1, description="logging.Formatter string.")

    @model_validator(mode="after")
    def _check_default_profile(self) -> MigratorConfig:
        if self.default_profile is not None and self.default_profile not in self.profiles:
            raise ValueError(f"default_profile {self.default_profile!r} is not a known profile")
        return self

    def profile(self, name: Optional[str] = None) -> CrawlTarget:
        """Return the named profile, the default one, or the first declared."""
        key = name or self.default_profile or next(iter(self.profiles))
        try:
            return self.profiles[key]
        except KeyError:
            raise KeyError(f"Unknown profile {key!r}; available: {', '.join(self.profiles)}") from None


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> MigratorConfig:
    """
    Read YAML or JSON and return a validated MigratorConfig.
    Raises FileNotFoundError when the config file is missing.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return MigratorConfig(**data)


__all__ = ["CrawlTarget", "MigratorConfig", "load_config"]
