"""Per-repository publication state.

The tracker remembers, for each repository key, the instant of the last
successful publish. The next run uses it as the default lower bound so
repeated runs only cover new activity.

State lives in memory for the lifetime of the tracker. When a ``path`` is
given the map is also loaded from and written to a small JSON file.
"""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
import tempfile
import threading

from .errors import ConfigError


class PublicationTracker:
    """Maps repository keys ("owner/name") to their last published instant."""

    def __init__(self, path: Path | None = None):
        self.path = path
        self._lock = threading.Lock()
        self._state: dict[str, datetime] = {}
        if path is not None and path.exists():
            self._state = _load_state(path)

    def last_instant(self, repo_key: str) -> datetime | None:
        """Return the last published instant, or None if never published."""
        with self._lock:
            return self._state.get(repo_key)

    def record(self, repo_key: str, instant: datetime) -> None:
        """Store ``instant`` for ``repo_key``, replacing any previous value."""
        with self._lock:
            self._state[repo_key] = instant
            if self.path is not None:
                _write_state(self.path, self._state)


def _load_state(path: Path) -> dict[str, datetime]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Publication state file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Publication state file {path} must contain a JSON object")
    state = {}
    for key, value in raw.items():
        try:
            state[key] = datetime.fromisoformat(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid timestamp for {key!r} in {path}: {value!r}") from exc
    return state


def _write_state(path: Path, state: dict[str, datetime]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {key: value.isoformat() for key, value in sorted(state.items())}
    # Write beside the target and swap it in so readers never see a partial file.
    with tempfile.NamedTemporaryFile("w", encoding="utf-8", delete=False, dir=str(path.parent)) as tmp:
        tmp.write(f"{json.dumps(payload, indent=2)}\n")
        tmp_path = Path(tmp.name)
    tmp_path.replace(path)
