from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from .rowgen import GenConfig


def load_json_config(path: Path) -> Dict[str, Any]:
    """Load a JSON config file or raise a helpful error.

    Raises:
        FileNotFoundError: If the file does not exist.
        SystemExit: If JSON is invalid, with a friendly message.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = (
            f"\nERROR: Your generation config is not valid JSON.\n"
            f"File: {path}\n"
            f"Line {e.lineno}, Col {e.colno}\n"
            f"{e.msg}\n"
        )
        raise SystemExit(msg)
    if not isinstance(data, dict):
        raise SystemExit(f"\nERROR: {path} must hold a JSON object, got {type(data).__name__}.\n")
    return data


def load_gen_config(path: Union[str, Path]) -> GenConfig:
    """Custom-tier tuning from a preset-shaped JSON object (missing keys use "relaxed")."""
    return GenConfig.from_dict(load_json_config(Path(path)))
