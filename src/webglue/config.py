"""
API keys and tokens for the clients that need them.

Keys come from environment variables; optionally from a KEY=VALUE file for
convenience (e.g. `api_keys.txt`, one key per line, `#` comments allowed).
Values in the file take precedence over the environment.

Supported keys:
- CONVERTIO_API_KEY
- NOTION_TOKEN_V2
- NOTION_SPACE_ID
- HTML2PDF_API_KEY
- DEEPAI_API_KEY
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional

from .errors import MissingCredential

KEY_NAMES: Dict[str, str] = {
    "convertio_api_key": "CONVERTIO_API_KEY",
    "notion_token_v2": "NOTION_TOKEN_V2",
    "notion_space_id": "NOTION_SPACE_ID",
    "html2pdf_api_key": "HTML2PDF_API_KEY",
    "deepai_api_key": "DEEPAI_API_KEY",
}


def read_key_file(path: Path) -> Dict[str, str]:
    d: Dict[str, str] = {}
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            d[k.strip()] = v.strip().strip('"').strip("'")
    return d


@dataclass
class ApiKeys:
    convertio_api_key: Optional[str] = None
    notion_token_v2: Optional[str] = None
    notion_space_id: Optional[str] = None
    html2pdf_api_key: Optional[str] = None
    deepai_api_key: Optional[str] = None

    @classmethod
    def from_env_or_file(cls, api_keys_file: Optional[Path] = None) -> "ApiKeys":
        from_file: Dict[str, str] = {}
        if api_keys_file and Path(api_keys_file).exists():
            from_file = read_key_file(Path(api_keys_file))
        values: Dict[str, Optional[str]] = {}
        for attr, env_name in KEY_NAMES.items():
            values[attr] = from_file.get(env_name) or os.getenv(env_name) or None
        return cls(**values)

    def require(self, attr: str) -> str:
        """Return a configured value or raise MissingCredential naming its env variable."""
        if attr not in {f.name for f in fields(self)}:
            raise AttributeError(attr)
        value = getattr(self, attr)
        if not value:
            raise MissingCredential(KEY_NAMES[attr])
        return value


_active: Optional[ApiKeys] = None


def get_api_keys() -> ApiKeys:
    """Keys used when a client call does not pass its own; loaded from the environment once."""
    global _active
    if _active is None:
        _active = ApiKeys.from_env_or_file()
    return _active


def set_api_keys(keys: Optional[ApiKeys]) -> None:
    """Install keys for later client calls (the CLI does this for --api-keys). None resets."""
    global _active
    _active = keys
