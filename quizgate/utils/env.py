"""Minimal .env support so local runs can point the engine at a dev API."""

from __future__ import annotations

import os
import re
from pathlib import Path

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def default_env_path() -> Path:
  """Return the .env path at the repository root."""
  return Path(__file__).resolve().parents[2] / ".env"


def _strip_inline_comment(value: str) -> str:
  # `#` only starts a comment when whitespace precedes it.
  match = re.search(r"\s#", value)
  if not match:
    return value.strip()
  return value[: match.start()].rstrip()


def parse_env_line(raw: str) -> tuple[str, str] | None:
  """Parse one dotenv line into (key, value); blank lines, comments and junk return None."""
  line = raw.strip()
  if not line or line.startswith("#"):
    return None
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()
  if "=" not in line:
    return None

  key, value = line.split("=", 1)
  key = key.strip()
  if not _ENV_KEY_RE.fullmatch(key):
    return None

  value = value.strip()
  # Quoted values are taken literally, including any `#`.
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return key, value[1:-1]
  return key, _strip_inline_comment(value)


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Export the pairs of a .env file into os.environ, keeping existing values unless override is set."""
  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = parse_env_line(raw_line)
    if parsed is None:
      continue
    key, value = parsed
    if not override and key in os.environ:
      continue
    os.environ[key] = value
