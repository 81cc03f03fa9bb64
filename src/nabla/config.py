"""Runtime configuration for the preview engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field


@dataclass(slots=True)
class EngineSettings:
    """Queue sizing and polling for the parallel dispatchers."""

    request_queue_factor: int = 2
    result_queue_factor: int = 2
    pending_factor: int = 8
    poll_interval_seconds: float = 0.01

    def request_capacity(self, workers: int) -> int:
        return workers * self.request_queue_factor

    def result_capacity(self, workers: int) -> int:
        return workers * self.result_queue_factor

    def pending_bound(self, workers: int) -> int:
        return workers * self.pending_factor


@dataclass(slots=True)
class Settings:
    """Application settings; CLI options override values loaded from the environment."""

    jobs: int = 0
    force_parallel: bool = False
    log_level: str = "WARNING"
    engine: EngineSettings = field(default_factory=EngineSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``NABLA_*`` environment variables."""

        return cls(
            jobs=_env_int("NABLA_JOBS", 0),
            force_parallel=_env_bool("NABLA_FORCE_PARALLEL", default=False),
            log_level=os.getenv("NABLA_LOG_LEVEL", "WARNING").strip().upper(),
            engine=EngineSettings(
                poll_interval_seconds=float(os.getenv("NABLA_POLL_INTERVAL_SECONDS", "0.01")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the engine cannot run with."""

        if self.jobs < 0:
            raise ValueError("NABLA_JOBS must be >= 0.")
        if self.log_level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown NABLA_LOG_LEVEL: {self.log_level!r}")
        engine = self.engine
        for name in ("request_queue_factor", "result_queue_factor", "pending_factor"):
            if getattr(engine, name) <= 0:
                raise ValueError(f"Engine setting {name} must be a positive integer.")
        if engine.poll_interval_seconds <= 0:
            raise ValueError("NABLA_POLL_INTERVAL_SECONDS must be > 0.")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
