"""Remembered bindings: repository root -> last resolved single instance."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from panebridge.models.candidate import AssistantCandidate

logger = logging.getLogger(__name__)


class InstanceCache:
    """Root-keyed cache of resolved instances.

    Entries are never trusted on their own; callers pair :meth:`get` with a
    pane liveness check and :meth:`clear` the entry when that check fails.
    When ``state_path`` is given, bindings are persisted as JSON so they
    survive across CLI invocations.
    """

    def __init__(self, state_path: Path | None = None) -> None:
        self._state_path = state_path
        self._bindings: dict[str, AssistantCandidate] | None = None

    @property
    def state_path(self) -> Path | None:
        return self._state_path

    def get(self, root: str) -> AssistantCandidate | None:
        return self._load().get(root)

    def set(self, root: str, candidate: AssistantCandidate) -> None:
        bindings = self._load()
        bindings[root] = candidate
        logger.debug("Remembered %s for %s", candidate.pane_id, root)
        self._save()

    def clear(self, root: str) -> bool:
        """Forget the binding for ``root``. Returns True if one existed."""
        bindings = self._load()
        if root not in bindings:
            return False
        del bindings[root]
        logger.debug("Cleared binding for %s", root)
        self._save()
        return True

    def entries(self) -> dict[str, AssistantCandidate]:
        return dict(self._load())

    def _load(self) -> dict[str, AssistantCandidate]:
        if self._bindings is not None:
            return self._bindings
        self._bindings = {}
        if self._state_path is None or not self._state_path.exists():
            return self._bindings
        try:
            raw = json.loads(self._state_path.read_text())
            bindings = raw.get("bindings", {}) if isinstance(raw, dict) else None
            if not isinstance(bindings, dict):
                raise ValueError(f"expected a bindings object, got {type(bindings).__name__}")
            for root, doc in bindings.items():
                self._bindings[root] = AssistantCandidate.from_doc(doc)
        except (OSError, json.JSONDecodeError, KeyError, ValueError, TypeError):
            logger.warning(
                "Ignoring unreadable binding state %s", self._state_path, exc_info=True,
            )
            self._bindings = {}
        return self._bindings

    def _save(self) -> None:
        if self._state_path is None:
            return
        doc = {
            "bindings": {
                root: candidate.to_doc() for root, candidate in (self._bindings or {}).items()
            }
        }
        try:
            self._state_path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._state_path.with_suffix(self._state_path.suffix + ".tmp")
            tmp.write_text(json.dumps(doc, indent=2))
            os.replace(tmp, self._state_path)
        except OSError:
            logger.warning("Could not persist bindings to %s", self._state_path, exc_info=True)
