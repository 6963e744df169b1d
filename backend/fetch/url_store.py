"""
URL Store - Single responsibility: persist and load named endpoint URLs
"""

import json
from pathlib import Path
from typing import Dict, Optional, Protocol


class IUrlStore(Protocol):
    """Interface for URL storage"""

    def get(self, name: str) -> Optional[str]: ...
    def set(self, name: str, url: str) -> None: ...
    def delete(self, name: str) -> bool: ...
    def to_dict(self) -> Dict[str, str]: ...


class UrlStore:
    """Persists a {name: url} list to a JSON file"""

    def __init__(self, file_path: Optional[Path] = None):
        self.file_path = file_path or Path(__file__).parent.parent / "url_list.json"
        self._urls = self._load()

    def _load(self) -> Dict[str, str]:
        """Load URLs from file; missing or malformed files give an empty list"""
        if self.file_path.exists():
            try:
                with open(self.file_path, 'r') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}
            except (json.JSONDecodeError, OSError):
                pass
        return {}

    def _save(self) -> None:
        with open(self.file_path, 'w') as f:
            json.dump(self._urls, f, indent=2)

    def get(self, name: str) -> Optional[str]:
        """Get URL by name; empty strings count as missing"""
        return self._urls.get(name) or None

    def set(self, name: str, url: str) -> None:
        self._urls[name] = url
        self._save()

    def delete(self, name: str) -> bool:
        if name in self._urls:
            del self._urls[name]
            self._save()
            return True
        return False

    def names(self) -> list[str]:
        return list(self._urls)

    def to_dict(self) -> Dict[str, str]:
        """Export all URLs as dict (for API)"""
        return dict(self._urls)
