# Storage for per-room last message ids (cursors)
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional


class CursorRepository:
    """Flat JSON file mapping source room names to the last relayed message id.

    The whole file is rewritten on every save. There is no locking, so two
    overlapping runs race and the last writer wins.
    """

    def __init__(self, path: str, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)

    def _ensure_file(self):
        if not self.path.exists():
            self.logger.info(f"Creating cursor file {self.path}")
            self.path.write_text(json.dumps({}), encoding="utf-8")

    def load(self) -> Dict[str, str]:
        self._ensure_file()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self.logger.warning(f"Cursor file {self.path} is not valid JSON, starting empty: {exc}")
            return {}
        if not isinstance(raw, dict):
            self.logger.warning(f"Cursor file {self.path} does not hold an object, starting empty")
            return {}
        return {str(room): str(message_id) for room, message_id in raw.items() if message_id is not None}

    def save(self, cursors: Dict[str, str]):
        content = json.dumps(cursors, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_path, str(self.path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        self.logger.debug(f"Saved {len(cursors)} cursors to {self.path}")
