"""
Target configuration: one TargetProfile per Kibana instance.

Profiles come either from a YAML file (a list under ``kibanas``) or from a
single URL given on the command line. Both paths end in the same frozen
dataclass, so nothing downstream cares where a target was defined.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kibana_exporter.errors import ConfigError

DEFAULT_PROTOCOL = "http"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = "5601"

_TRUE_VALUES = ("1", "true", "yes")
_FALSE_VALUES = ("0", "false", "no")

# scheme://host[:port] then end or a path; a path (reverse proxy) is kept in the base URL
_URL_RE = re.compile(r"^(https?)://([^:/]+)(?::(\d+))?(?=/|$)")


def parse_bool(value: Any) -> bool:
    """Accepts yes/no/true/false/1/0 in any case, plus real booleans."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text == "":
        return False
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {value!r}")


class TargetConfig(BaseModel):
    """One raw record from the ``kibanas`` list, before defaults are applied."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, coerce_numbers_to_str=True)

    name: str
    protocol: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    skip_tls: bool = Field(default=False, alias="skip-tls")
    wait: bool = False

    @field_validator("skip_tls", "wait", mode="before")
    @classmethod
    def _parse_flag(cls, v: Any) -> bool:
        return parse_bool(v)

    @field_validator("protocol")
    @classmethod
    def _check_protocol(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if v and v not in ("http", "https"):
            raise ValueError("protocol must be http or https")
        return v

    @field_validator("port")
    @classmethod
    def _check_port(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if v and not v.isdigit():
            raise ValueError(f"port must be numeric, got {v!r}")
        return v


class ConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kibanas: List[TargetConfig] = Field(default_factory=list)


def _validate(model, data: Any):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err["loc"]) or None
        raise ConfigError(err["msg"], field=field) from e


@dataclass(frozen=True)
class TargetProfile:
    """A validated Kibana endpoint. ``base_url`` is fixed at construction."""

    name: str
    protocol: str = DEFAULT_PROTOCOL
    host: str = DEFAULT_HOST
    port: str = DEFAULT_PORT
    username: str = ""
    password: str = ""
    skip_tls: bool = False
    wait: bool = False
    base_url: str = ""

    def __post_init__(self):
        if not self.base_url:
            object.__setattr__(self, "base_url", f"{self.protocol}://{self.host}:{self.port}")

    @property
    def is_tls(self) -> bool:
        return self.protocol == "https"

    @classmethod
    def from_config(cls, raw: Union[Mapping[str, Any], TargetConfig]) -> "TargetProfile":
        """Validate a raw record and fill in every default that is missing."""
        record = raw if isinstance(raw, TargetConfig) else _validate(TargetConfig, raw)

        name = record.name.strip()
        if not name:
            raise ConfigError("config must have the field name set", field="name")

        return cls(
            name=name,
            protocol=record.protocol or DEFAULT_PROTOCOL,
            host=(record.host or "").strip() or DEFAULT_HOST,
            port=record.port or DEFAULT_PORT,
            username=record.username or "",
            password=record.password or "",
            skip_tls=record.skip_tls,
            wait=record.wait,
        )

    @classmethod
    def from_url(
        cls,
        url: str,
        name: str = "default",
        username: str = "",
        password: str = "",
        skip_tls: bool = False,
        wait: bool = False,
    ) -> "TargetProfile":
        """Build a profile from a complete URL such as ``https://kibana:5601``.

        Protocol, host and port are taken from the URL as-is; the usual
        defaults do not apply.
        """
        url = url.strip().rstrip("/")
        match = _URL_RE.match(url)
        if match is None:
            raise ConfigError(f"cannot parse Kibana URL {url!r}", field="url")

        return cls(
            name=name,
            protocol=match.group(1),
            host=match.group(2),
            port=match.group(3) or "",
            username=username,
            password=password,
            skip_tls=skip_tls,
            wait=wait,
            base_url=url,
        )

    def as_config(self) -> Dict[str, Any]:
        """The raw record form; ``from_config(p.as_config()) == p``."""
        return {
            "name": self.name,
            "protocol": self.protocol,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "skip-tls": "yes" if self.skip_tls else "no",
            "wait": "yes" if self.wait else "no",
        }


def load_config(path: Union[str, Path]) -> List[TargetProfile]:
    """Read a YAML file and return its validated targets, in file order."""
    config_file = Path(path)
    if not config_file.exists():
        raise ConfigError(f"configuration file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if raw is None:
        raw = {}
    parsed = _validate(ConfigFile, raw)
    if not parsed.kibanas:
        raise ConfigError("no valid config found", field="kibanas")

    profiles: List[TargetProfile] = []
    seen = set()
    for index, record in enumerate(parsed.kibanas):
        try:
            profile = TargetProfile.from_config(record)
        except ConfigError as e:
            field = f"kibanas.{index}.{e.field}" if e.field else f"kibanas.{index}"
            raise ConfigError(e.reason, field=field) from e
        if profile.name in seen:
            raise ConfigError(f"duplicate target name {profile.name!r}", field=f"kibanas.{index}.name")
        seen.add(profile.name)
        profiles.append(profile)

    return profiles
