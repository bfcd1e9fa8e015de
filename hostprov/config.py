"""Desired-state configuration.

The desired state is data: a list of packages and a list of services, read
from a YAML file and optionally overlaid by a named profile and by
``HOSTPROV_*`` environment variables (a ``.env`` file is honoured).
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from hostprov.errors import ConfigError
from hostprov.safety import UnsafeCommand, validate_name

DEFAULT_CONFIG = "hostprov.yaml"


@dataclass(frozen=True)
class PackageSpec:
    name: str


@dataclass(frozen=True)
class ServiceSpec:
    """A service the host should have.

    ``enabled=False`` or ``running=False`` means "leave that property alone":
    services are never disabled or stopped.
    """

    name: str
    enabled: bool = True
    running: bool = True


@dataclass(frozen=True)
class DesiredState:
    packages: Tuple[PackageSpec, ...] = ()
    services: Tuple[ServiceSpec, ...] = ()

    @property
    def package_names(self) -> List[str]:
        return [p.name for p in self.packages]


@dataclass(frozen=True)
class Settings:
    manager: Optional[str] = None
    retries: int = 2
    backoff: float = 1.0


@dataclass(frozen=True)
class Config:
    desired: DesiredState
    settings: Settings = field(default_factory=Settings)
    profile: Optional[str] = None
    profiles: Tuple[str, ...] = ()


def _split(raw: str) -> List[str]:
    return [x for x in re.split(r"[,\s]+", raw) if x]


def unique(names: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for n in names:
        if n not in seen:
            seen.add(n)
            out.append(n)
    return out


def _package_names(raw: Any, where: str) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{where}: 'packages' must be a list")
    names = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(f"{where}: package names must be non-empty strings, got {item!r}")
        names.append(item.strip())
    return names


def _service(raw: Any, where: str) -> ServiceSpec:
    if isinstance(raw, str) and raw.strip():
        return ServiceSpec(raw.strip())
    if isinstance(raw, dict):
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ConfigError(f"{where}: service entry without a name: {raw!r}")
        return ServiceSpec(
            name,
            enabled=bool(raw.get("enabled", True)),
            running=bool(raw.get("running", True)),
        )
    raise ConfigError(f"{where}: invalid service entry {raw!r}")


def _services(raw: Any, where: str) -> List[ServiceSpec]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{where}: 'services' must be a list")
    return [_service(s, where) for s in raw]


def _merge_services(base: List[ServiceSpec], extra: List[ServiceSpec]) -> List[ServiceSpec]:
    # later entries for the same service win, first position is kept
    merged: Dict[str, ServiceSpec] = {}
    for s in base + extra:
        merged[s.name] = s
    return list(merged.values())


def parse_config(data: Dict[str, Any], profile: Optional[str] = None, env=None) -> Config:
    """Build a Config from already-parsed YAML data and an environment mapping."""
    env = os.environ if env is None else env
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("top level of the config must be a mapping")

    packages = _package_names(data.get("packages"), "config")
    services = _services(data.get("services"), "config")

    profiles = data.get("profiles") or {}
    if not isinstance(profiles, dict):
        raise ConfigError("'profiles' must be a mapping")

    profile = profile or env.get("HOSTPROV_PROFILE") or None
    if profile:
        if profile not in profiles:
            raise ConfigError(f"unknown profile: {profile}")
        prof = profiles[profile] or {}
        if not isinstance(prof, dict):
            raise ConfigError(f"profile {profile} must be a mapping")
        where = f"profile {profile}"
        packages += _package_names(prof.get("packages"), where)
        services = _merge_services(services, _services(prof.get("services"), where))

    if env.get("HOSTPROV_PACKAGES"):
        packages += _split(env["HOSTPROV_PACKAGES"])
    if env.get("HOSTPROV_SERVICES"):
        services = _merge_services(services, [ServiceSpec(n) for n in _split(env["HOSTPROV_SERVICES"])])

    raw_settings = data.get("settings") or {}
    if not isinstance(raw_settings, dict):
        raise ConfigError("'settings' must be a mapping")
    try:
        settings = Settings(
            manager=env.get("HOSTPROV_MANAGER") or raw_settings.get("manager"),
            retries=int(env.get("HOSTPROV_RETRIES") or raw_settings.get("retries", 2)),
            backoff=float(env.get("HOSTPROV_BACKOFF") or raw_settings.get("backoff", 1.0)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid settings: {e}") from e
    if settings.retries < 0 or settings.backoff < 0:
        raise ConfigError("retries and backoff must not be negative")

    for name in packages + [s.name for s in services]:
        try:
            validate_name(name)
        except UnsafeCommand as e:
            raise ConfigError(str(e)) from e

    desired = DesiredState(
        packages=tuple(PackageSpec(n) for n in unique(packages)),
        services=tuple(services),
    )
    return Config(desired=desired, settings=settings, profile=profile, profiles=tuple(str(p) for p in profiles))


def load_config(path: Optional[str] = None, profile: Optional[str] = None) -> Config:
    load_dotenv(dotenv_path=".env", override=False)

    path = path or os.getenv("HOSTPROV_CONFIG") or DEFAULT_CONFIG
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}") from e

    return parse_config(data, profile=profile)
