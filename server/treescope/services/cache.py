import json
from pathlib import Path
from typing import Optional

from treescope.config import CACHE_FILE_NAME
from treescope.models import DirectoryNode

def get_cache_path(root_path: Path) -> Path:
    return root_path / CACHE_FILE_NAME

def save_analysis(root_path: Path, tree: DirectoryNode) -> None:
    cache_path = get_cache_path(root_path)
    try:
        payload = tree.model_dump_json(indent=2)
        with open(cache_path, "w", encoding="utf-8") as f:
            f.write(payload)
    except (OSError, ValueError) as e:
        # ValueError covers pydantic serialization failures.
        print(f"⚠️ Failed to save cache: {e}", flush=True)
        return
    print(f"✅ Saved scan to {cache_path}", flush=True)

def load_analysis(root_path: Path) -> Optional[DirectoryNode]:
    cache_path = get_cache_path(root_path)
    if not cache_path.exists():
        return None

    try:
        with open(cache_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return DirectoryNode.model_validate(data)
    except (OSError, ValueError) as e:
        print(f"⚠️ Failed to load cache: {e}", flush=True)
        return None

def clear_analysis(root_path: Path) -> bool:
    cache_path = get_cache_path(root_path)
    if not cache_path.exists():
        return False
    cache_path.unlink()
    return True
