"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from quizgate.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the quiz engine."""

  api_base_url: str
  request_timeout_seconds: float | None
  shuffle_seed: int | None
  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  stripped = raw.strip()
  return stripped or None


def _optional_int(name: str, raw: str | None) -> int | None:
  value = _optional_str(raw)
  if value is None:
    return None
  try:
    return int(value)
  except ValueError as exc:
    raise ValueError(f"{name} must be an integer.") from exc


def _int_with_default(name: str, default: int) -> int:
  value = _optional_int(name, os.getenv(name))
  return default if value is None else value


def _optional_timeout(raw: str | None) -> float | None:
  value = _optional_str(raw)
  if value is None:
    return None
  try:
    timeout = float(value)
  except ValueError as exc:
    raise ValueError("QUIZGATE_REQUEST_TIMEOUT_SECONDS must be a number.") from exc
  if timeout <= 0:
    raise ValueError("QUIZGATE_REQUEST_TIMEOUT_SECONDS must be positive when set.")
  return timeout


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  api_base_url = (os.getenv("QUIZGATE_API_BASE_URL") or "http://localhost:3000/api").strip().rstrip("/")
  if not api_base_url:
    raise ValueError("QUIZGATE_API_BASE_URL must not be empty.")

  # Requests carry no client-side deadline unless one is configured explicitly.
  request_timeout_seconds = _optional_timeout(os.getenv("QUIZGATE_REQUEST_TIMEOUT_SECONDS"))

  # A fixed seed makes every shuffle reproducible across processes (useful for support repro).
  shuffle_seed = _optional_int("QUIZGATE_SHUFFLE_SEED", os.getenv("QUIZGATE_SHUFFLE_SEED"))

  debug = _parse_bool(os.getenv("QUIZGATE_DEBUG"))
  log_dir = (os.getenv("QUIZGATE_LOG_DIR") or "./logs").strip()

  log_max_bytes = _int_with_default("QUIZGATE_LOG_MAX_BYTES", 5242880)  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("QUIZGATE_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = _int_with_default("QUIZGATE_LOG_BACKUP_COUNT", 10)
  if log_backup_count < 0:
    raise ValueError("QUIZGATE_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    api_base_url=api_base_url,
    request_timeout_seconds=request_timeout_seconds,
    shuffle_seed=shuffle_seed,
    debug=debug,
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
  )
