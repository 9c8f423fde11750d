"""Artifact storage abstraction.

Responsibilities:
- Provide deterministic filesystem storage for JSON and binary export artifacts.
- Replace files atomically so readers never observe a half-written document.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile


class ArtifactStore:
    """Filesystem-backed artifact store rooted at one output directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def save_json(self, relative_path: Path, payload: object) -> Path:
        """Save JSON-serializable payload and return final path."""

        text = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
        return self._replace(relative_path, text.encode("utf-8"))

    def save_bytes(self, relative_path: Path, data: bytes) -> Path:
        """Save binary export bytes (PDF, EPUB) and return final path."""

        return self._replace(relative_path, data)

    def _replace(self, relative_path: Path, data: bytes) -> Path:
        """Write bytes to a sibling temp file and atomically move it into place."""

        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(data)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return path
