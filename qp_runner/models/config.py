"""Profiler configuration (canonical CLI/runner definition)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from qp_common.durations import format_duration, parse_duration
from qp_common.errors import ConfigurationError

ARCHIVE_NAME = "profiles.tar.gz"
DEFAULT_HOST = "http://localhost:8086"


@dataclass(frozen=True)
class RunMode:
    """Workload mode: repeat the query N times, or keep running for a duration."""

    repeat: int = 1
    duration: float = 0.0

    @property
    def is_timed(self) -> bool:
        return self.duration > 0


class ProfilerConfig(BaseModel):
    """Configuration for one profiling session."""

    host: str = Field(default=DEFAULT_HOST, description="scheme://host:port of server/cluster/load balancer")
    user: str = Field(default="", description="Username if using authentication")
    password: str = Field(default="", description="Password if using authentication")
    insecure_ssl: bool = Field(default=False, description="Skip SSL certificate validation")

    database: str = Field(description="Database to query")
    query: str = Field(description="Query to profile")
    repeat: int = Field(default=1, ge=0, description="Repeat query n times (ignored when duration is set)")
    duration: float = Field(default=0.0, ge=0, description="Repeat query for this many seconds (overrides repeat)")

    output_dir: Path = Field(default=Path("."), description="Output directory")
    include_cpu: bool = Field(default=True, description="Include CPU profile (will take at least 30s)")
    warmup_seconds: float = Field(default=15.0, ge=0, description="Delay before taking concurrent profiles")
    ping_timeout: float = Field(default=2.0, gt=0, description="Timeout for the startup ping in seconds")
    error_header: str = Field(default="X-Influxdb-Error", description="Response header carrying server error text")

    @field_validator("host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        parsed = urlsplit(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"host must be an http(s) URL, got: {value}")
        return value.rstrip("/")

    @field_validator("database", "query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be non-empty")
        return value

    @field_validator("duration", "warmup_seconds", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @property
    def archive_path(self) -> Path:
        return self.output_dir / ARCHIVE_NAME

    def run_mode(self) -> RunMode:
        if self.duration > 0:
            return RunMode(duration=self.duration)
        return RunMode(repeat=self.repeat)

    def flag_lines(self) -> List[str]:
        """Render the flag dump stored at the head of info.txt."""
        flags = {
            "cpu": str(self.include_cpu).lower(),
            "db": self.database,
            "host": self.host,
            "k": str(self.insecure_ssl).lower(),
            "n": str(self.repeat),
            "out": str(self.output_dir),
            "pass": "******" if self.password else "",
            "t": format_duration(self.duration),
            "user": self.user,
            "warmup": format_duration(self.warmup_seconds),
        }
        lines = ["Flags:"]
        lines.extend(f"-{name} {value}" for name, value in sorted(flags.items()))
        lines.append("")
        return lines

    @classmethod
    def load(cls, path: Optional[Path] = None, **overrides: Any) -> "ProfilerConfig":
        """Build a config from an optional YAML file plus non-None overrides."""
        data: dict[str, Any] = {}
        if path is not None:
            try:
                loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigurationError(
                    f"Failed to read config file {path}",
                    context={"path": path},
                    cause=exc,
                ) from exc
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ConfigurationError(
                    f"Config file {path} must contain a mapping",
                    context={"path": path},
                )
            data.update(loaded)
        data.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration: {exc}",
                context={"fields": sorted(data)},
                cause=exc,
            ) from exc
