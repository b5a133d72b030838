from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .models import Settings

log = logging.getLogger(__name__)

DATA_DIR_ENV = "DIATONIC_EAR_DATA_DIR"


def _data_path() -> Path:
	dir_ = Path(os.environ.get(DATA_DIR_ENV, Path.home() / ".diatonic_ear"))
	dir_.mkdir(parents=True, exist_ok=True)
	return dir_ / "data.json"


def _load_raw() -> Dict[str, Any]:
	p = _data_path()
	if not p.exists():
		return {}
	try:
		data = json.loads(p.read_text())
	except (OSError, ValueError) as exc:
		log.warning("ignoring unreadable data file %s: %s", p, exc)
		return {}
	return data if isinstance(data, dict) else {}


def _save_raw(data: Dict[str, Any]) -> None:
	p = _data_path()
	p.write_text(json.dumps(data, indent=2))


def load_settings() -> Settings:
	raw = _load_raw()
	obj = raw.get("settings", {})
	if isinstance(obj, dict):
		return Settings.model_validate(obj)
	return Settings()


def save_settings(s: Settings) -> None:
	raw = _load_raw()
	raw["settings"] = s.model_dump(exclude={"max_questions"})
	_add_defaults_if_missing(raw)
	_save_raw(raw)


def load_completed_levels() -> List[str]:
	obj = _load_raw().get("completed_levels", [])
	if not isinstance(obj, list):
		return []
	return [str(x) for x in obj]


def save_completed_levels(level_ids: Iterable[str]) -> None:
	raw = _load_raw()
	raw["completed_levels"] = list(dict.fromkeys(level_ids))
	_add_defaults_if_missing(raw)
	_save_raw(raw)


def mark_completed(level_id: str) -> List[str]:
	done = load_completed_levels()
	if level_id not in done:
		done.append(level_id)
		save_completed_levels(done)
	return done


def _add_defaults_if_missing(raw: Dict[str, Any]) -> None:
	if "settings" not in raw or not isinstance(raw["settings"], dict):
		raw["settings"] = Settings().model_dump(exclude={"max_questions"})
	if "completed_levels" not in raw or not isinstance(raw["completed_levels"], list):
		raw["completed_levels"] = []
