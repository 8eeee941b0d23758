"""Client configuration: environment settings, profile file and endpoint resolution.

Priority: CLI flags > environment variables > profile file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from specter.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class Settings(BaseSettings):
    """Environment-driven settings (``GHOST_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="GHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = ""
    admin_key: str = ""
    profile: str = ""
    timeout: float = Field(default=30.0, gt=0)
    max_pages: int = Field(default=10_000, ge=1)


class Instance(BaseModel):
    """One configured site."""

    url: str = ""
    key: str = ""


class ProfileFile(BaseModel):
    """On-disk profile file structure.

    Top-level ``url``/``key`` are the legacy single-instance form.
    """

    default: str = ""
    instances: dict[str, Instance] = Field(default_factory=dict)
    url: str = ""
    key: str = ""


@dataclass(frozen=True)
class Endpoint:
    """Connection configuration passed explicitly into every API call."""

    base_url: str
    api_key: str = field(repr=False)
    timeout: float = 30.0
    max_pages: int = 10_000

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


def config_dir() -> Path:
    return Path.home() / ".config" / "specter"


def config_path() -> Path:
    """Path the profile file is written to."""
    return config_dir() / "config.yaml"


def candidate_paths() -> list[Path]:
    """Profile file locations, in lookup order."""
    return [config_path(), Path.home() / ".specter.yaml"]


def load_profile_file(paths: list[Path] | None = None) -> ProfileFile | None:
    """Load the first existing profile file, or None when there is none."""
    for path in paths if paths is not None else candidate_paths():
        if not path.is_file():
            continue
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            msg = f"parsing {path}: {exc}"
            raise ConfigError(msg) from exc
        try:
            return ProfileFile.model_validate(raw or {})
        except ValidationError as exc:
            msg = f"invalid config file {path}: {exc}"
            raise ConfigError(msg) from exc
    return None


def load_endpoint(
    *,
    url: str | None = None,
    key: str | None = None,
    profile: str | None = None,
    settings: Settings | None = None,
    paths: list[Path] | None = None,
) -> Endpoint:
    """Resolve the endpoint from flags, environment and profile file."""
    settings = settings if settings is not None else Settings()
    resolved_url = ""
    resolved_key = ""

    file_cfg = load_profile_file(paths)
    if file_cfg is not None:
        selected = profile or settings.profile or file_cfg.default
        instance = file_cfg.instances.get(selected) if selected else None
        if instance is not None:
            resolved_url, resolved_key = instance.url, instance.key
        elif profile:
            msg = f"profile not found: {profile}"
            raise ConfigError(msg)
        if not resolved_url and file_cfg.url:
            resolved_url, resolved_key = file_cfg.url, file_cfg.key
        logger.debug("Loaded profile file (profile=%s)", selected or "<legacy>")

    if settings.url:
        resolved_url = settings.url
    if settings.admin_key:
        resolved_key = settings.admin_key

    if url:
        resolved_url = url
    if key:
        resolved_key = key

    if not resolved_url:
        msg = "ghost URL not configured (use 'specter login', set GHOST_URL, or use --url)"
        raise ConfigError(msg)
    if not resolved_key:
        msg = (
            "ghost admin key not configured "
            "(use 'specter login', set GHOST_ADMIN_KEY, or use --key)"
        )
        raise ConfigError(msg)

    return Endpoint(
        base_url=resolved_url,
        api_key=resolved_key,
        timeout=settings.timeout,
        max_pages=settings.max_pages,
    )


def save_instance(
    name: str,
    url: str,
    key: str,
    set_default: bool = False,
    path: Path | None = None,
) -> Path:
    """Add or replace a profile and write the profile file.

    A legacy single-instance file is migrated into a profile named
    ``default`` before the new profile is added.
    """
    target = path if path is not None else config_path()
    search = [target] if path is not None else candidate_paths()
    file_cfg = load_profile_file(search) or ProfileFile()

    if file_cfg.url and not file_cfg.instances:
        file_cfg.instances[DEFAULT_PROFILE] = Instance(url=file_cfg.url, key=file_cfg.key)
        if not file_cfg.default:
            file_cfg.default = DEFAULT_PROFILE
    file_cfg.url = ""
    file_cfg.key = ""

    file_cfg.instances[name] = Instance(url=url, key=key)
    if set_default or not file_cfg.default:
        file_cfg.default = name

    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    data = file_cfg.model_dump(exclude_defaults=True)
    target.write_text(yaml.safe_dump(data, sort_keys=True), encoding="utf-8")
    os.chmod(target, 0o600)
    logger.info("Saved profile %s to %s", name, target)
    return target


def list_instances(paths: list[Path] | None = None) -> tuple[list[str], str]:
    """Return configured profile names (sorted) and the default profile."""
    file_cfg = load_profile_file(paths)
    if file_cfg is None:
        msg = "no profiles configured (run 'specter login' to set up)"
        raise ConfigError(msg)
    return sorted(file_cfg.instances), file_cfg.default
