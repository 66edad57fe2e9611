"""
presets.py - Preset and Config Storage

Config file (JSON):
    {
      "default_sort": "name",
      "default_reverse": false,
      "presets": {
        "<name>": {"name": ..., "transform": {"mode": ..., ...}, "sort": ..., "reverse": ...}
      }
    }

Location: $RNM_CONFIG, else $XDG_CONFIG_HOME/rnm/config.json
(~/.config/rnm/config.json), or %APPDATA%\\rnm\\config.json on Windows.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import os
import platform

from .errors import PresetError, TransformError
from .models_fs import (
    SortKey, AffixMode, CaseMode, DatePosition, TransformSpec,
    SearchReplace, RegexReplace, Numbering, Prefix, Suffix, ChangeCase, DateInsert,
)

log = logging.getLogger(__name__)

CONFIG_ENV = "RNM_CONFIG"


def config_path() -> Path:
    """Get the config file path"""
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)

    if platform.system() == "Windows":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "rnm" / "config.json"


def transform_to_dict(spec: TransformSpec) -> Dict[str, Any]:
    """
    Serialize a transform

    Args:
        spec: Transform

    Returns:
        JSON-compatible dict with a "mode" tag
    """
    if isinstance(spec, SearchReplace):
        return {"mode": spec.mode, "search": spec.search, "replace": spec.replace,
                "case_sensitive": spec.case_sensitive}
    elif isinstance(spec, RegexReplace):
        return {"mode": spec.mode, "pattern": spec.pattern, "replacement": spec.replacement}
    elif isinstance(spec, Numbering):
        return {"mode": spec.mode, "pattern": spec.pattern, "start": spec.start}
    elif isinstance(spec, (Prefix, Suffix)):
        return {"mode": spec.mode, "text": spec.text, "action": spec.action.value}
    elif isinstance(spec, ChangeCase):
        return {"mode": spec.mode, "case": spec.case.value}
    elif isinstance(spec, DateInsert):
        return {"mode": spec.mode, "position": spec.position.value}
    raise PresetError(f"Cannot serialize transform: {spec!r}")


def transform_from_dict(data: Dict[str, Any]) -> TransformSpec:
    """
    Rebuild a transform from its serialized form

    Args:
        data: Dict produced by transform_to_dict

    Returns:
        Transform

    Raises:
        PresetError: unknown mode, missing or invalid fields
    """
    if not isinstance(data, dict):
        raise PresetError(f"Transform must be an object, got {type(data).__name__}")

    mode = data.get("mode")
    try:
        if mode == SearchReplace.mode:
            return SearchReplace(data["search"], data.get("replace", ""), bool(data.get("case_sensitive", True)))
        elif mode == RegexReplace.mode:
            return RegexReplace(data["pattern"], data.get("replacement", ""))
        elif mode == Numbering.mode:
            return Numbering(data["pattern"], int(data.get("start", 1)))
        elif mode == Prefix.mode:
            return Prefix(data["text"], AffixMode(data.get("action", "add")))
        elif mode == Suffix.mode:
            return Suffix(data["text"], AffixMode(data.get("action", "add")))
        elif mode == ChangeCase.mode:
            return ChangeCase(CaseMode(data["case"]))
        elif mode == DateInsert.mode:
            return DateInsert(DatePosition(data.get("position", "prefix")))
    except KeyError as e:
        raise PresetError(f"Transform '{mode}' is missing field {e}") from e
    except (TypeError, ValueError, TransformError) as e:
        raise PresetError(f"Invalid '{mode}' transform: {e}") from e

    raise PresetError(f"Unknown transform mode: {mode!r}")


@dataclass
class Preset:
    """A saved rename preset"""
    name: str
    transform: TransformSpec
    sort: SortKey = SortKey.NAME
    reverse: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "transform": transform_to_dict(self.transform),
            "sort": self.sort.value,
            "reverse": self.reverse,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Preset":
        if not isinstance(data, dict):
            raise PresetError(f"Preset '{name}' must be an object")
        try:
            sort = SortKey(data.get("sort", SortKey.NAME.value))
        except ValueError as e:
            raise PresetError(f"Preset '{name}': {e}") from e
        return cls(
            name=data.get("name", name),
            transform=transform_from_dict(data.get("transform")),
            sort=sort,
            reverse=bool(data.get("reverse", False)),
        )


@dataclass
class Config:
    """Application configuration"""
    default_sort: SortKey = SortKey.NAME
    default_reverse: bool = False
    presets: Dict[str, Preset] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load config from file, or return defaults if the file doesn't exist

        Raises:
            PresetError: file unreadable or not a valid config
        """
        path = Path(path) if path else config_path()
        if not path.exists():
            return cls()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PresetError(f"Cannot read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise PresetError(f"Invalid config {path}: top level must be an object")

        try:
            default_sort = SortKey(data.get("default_sort", SortKey.NAME.value))
        except ValueError as e:
            raise PresetError(f"Invalid config {path}: {e}") from e

        raw_presets = data.get("presets", {})
        if not isinstance(raw_presets, dict):
            raise PresetError(f"Invalid config {path}: 'presets' must be an object")

        config = cls(
            default_sort=default_sort,
            default_reverse=bool(data.get("default_reverse", False)),
        )
        for name, raw in raw_presets.items():
            config.add_preset(Preset.from_dict(name, raw))

        log.debug("Loaded config %s (%d presets)", path, len(config.presets))
        return config

    def save(self, path: Optional[Path] = None) -> Path:
        """
        Save config to file, creating the directory if needed

        Returns:
            Path written
        """
        path = Path(path) if path else config_path()
        data = {
            "default_sort": self.default_sort.value,
            "default_reverse": self.default_reverse,
            "presets": {name: preset.to_dict() for name, preset in sorted(self.presets.items())},
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise PresetError(f"Cannot write config {path}: {e}") from e

        log.debug("Saved config %s", path)
        return path

    def add_preset(self, preset: Preset) -> None:
        """Add or update a preset"""
        self.presets[preset.name] = preset

    def remove_preset(self, name: str) -> Optional[Preset]:
        """Remove a preset"""
        return self.presets.pop(name, None)

    def get_preset(self, name: str) -> Optional[Preset]:
        """Get a preset by name"""
        return self.presets.get(name)

    def list_presets(self) -> List[str]:
        """List all preset names"""
        return sorted(self.presets)
