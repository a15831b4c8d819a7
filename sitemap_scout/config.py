# === FILE: sitemap_scout/config.py ===
"""
Loading and validation of the SitemapScout crawl configuration.
Pydantic describes the schema and checks the values.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = ("DEFAULT_PROXIES", "CrawlConfig", "load_config")

#: Public CORS relays tried in order before the direct request.
#: ``{url}`` is replaced with the raw target, ``{encoded}`` with its percent-encoded form.
DEFAULT_PROXIES: tuple[str, ...] = (
    "https://corsproxy.io/?{url}",
    "https://api.codetabs.com/v1/proxy?quest={encoded}",
    "https://api.allorigins.win/raw?url={encoded}",
    "https://cors-anywhere.herokuapp.com/{url}",
    "https://thingproxy.freeboard.io/fetch/{url}",
)


class CrawlConfig(BaseModel):
    """Settings for one discovery + analysis run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    site_url: Optional[HttpUrl] = Field(None, description="Site origin to crawl.")
    sitemap_path: Optional[str] = Field(
        None, description="Explicit sitemap path or URL; disables the default path probing."
    )
    user_agent: str = Field("SitemapScout/1.0", min_length=1, description="User-Agent header.")

    attempt_timeout: float = Field(15.0, gt=0, description="Timeout of a single relay attempt (seconds).")
    retry_times: int = Field(3, ge=1, description="Total passes over the relay list per URL.")
    backoff_base: float = Field(1.0, ge=0, description="Base delay of the exponential backoff (seconds).")
    proxies: List[str] = Field(default_factory=lambda: list(DEFAULT_PROXIES))
    direct_fallback: bool = Field(True, description="Try the target URL directly after all relays.")

    sitemap_concurrency: int = Field(10, ge=1, description="Parallel sitemap fetches per wave.")
    page_concurrency: int = Field(24, ge=1, description="Parallel page fetch+analyze units.")
    max_sitemaps: int = Field(500, ge=1, description="Upper bound of sitemap documents per run.")
    max_urls: Optional[int] = Field(None, ge=1, description="Stop collecting URLs after this many.")
    filter_patterns: List[str] = Field(
        default_factory=list, description="Keep only URLs containing one of these substrings."
    )
    use_robots: bool = Field(True, description="Seed discovery with Sitemap: lines of robots.txt.")
    analysis_workers: int = Field(0, ge=0, description="Threads for HTML analysis (0 = event loop).")

    @field_validator("site_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("proxies")
    def _check_templates(cls, v: List[str]) -> List[str]:
        for template in v:
            if "{url}" not in template and "{encoded}" not in template:
                raise ValueError(f"relay template must contain {{url}} or {{encoded}}: {template!r}")
        return v

    @model_validator(mode="after")
    def _check_has_target(self) -> CrawlConfig:
        if not self.proxies and not self.direct_fallback:
            raise ValueError("at least one relay or direct_fallback is required")
        return self


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


def load_config(path: Union[str, Path, None]) -> CrawlConfig:
    """
    Read YAML or JSON and return a validated CrawlConfig.

    With *path* None, ``configs/default.yaml`` is used when present and the
    built-in defaults otherwise. Raises FileNotFoundError when an explicit
    config file does not exist.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
            return CrawlConfig()
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

    return CrawlConfig(**data)
