from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

_FIXTURE_DIR = Path(__file__).resolve().parent.parent.parent / "fixtures"


def load_json(filename: Union[str, Path]) -> List[Dict[str, Any]]:
    file_path = Path(filename)
    if not file_path.is_absolute():
        file_path = _FIXTURE_DIR / file_path
    with file_path.open() as f:
        return json.load(f)


def load_properties(path: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    return load_json(path or "properties.json")
