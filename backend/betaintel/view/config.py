"""Persisted per-view configuration.

All views share one JSON document keyed by view name. Each entry is a
versioned ``ViewConfig``; entries written by another version are
ignored and the view starts from defaults.
"""

from pathlib import Path

import orjson
import structlog
from pydantic import BaseModel, Field, ValidationError

from betaintel.config import get_settings

logger = structlog.get_logger()

VIEW_CONFIG_VERSION = 1


class ViewConfig(BaseModel):
    version: int = VIEW_CONFIG_VERSION
    column_order: list[str] = Field(default_factory=list)
    visible_columns: list[str] = Field(default_factory=list)
    column_widths: dict[str, int] = Field(default_factory=dict)
    filters: dict[str, str] = Field(default_factory=dict)

    class Config:
        extra = "ignore"

    def ordered_visible_columns(self) -> list[str]:
        """Visible column ids in display order."""
        if not self.column_order:
            return list(self.visible_columns)
        visible = set(self.visible_columns) if self.visible_columns else set(self.column_order)
        return [column for column in self.column_order if column in visible]


class ViewConfigStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or get_settings().view_config_path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = orjson.loads(self.path.read_bytes())
        except orjson.JSONDecodeError:
            logger.warning("view_config_unreadable", path=str(self.path))
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, view: str) -> ViewConfig:
        raw = self._read_all().get(view)
        if not isinstance(raw, dict):
            return ViewConfig()
        if raw.get("version") != VIEW_CONFIG_VERSION:
            logger.info("view_config_version_mismatch", view=view, version=raw.get("version"))
            return ViewConfig()
        try:
            return ViewConfig.model_validate(raw)
        except ValidationError:
            logger.warning("view_config_invalid", view=view)
            return ViewConfig()

    def save(self, view: str, config: ViewConfig) -> None:
        data = self._read_all()
        data[view] = config.model_dump()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        tmp.replace(self.path)
