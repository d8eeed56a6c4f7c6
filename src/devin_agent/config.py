"""
Client configuration — ~/.devin/config.json with environment overrides.

Environment: DEVIN_API_KEY, DEVIN_BASE_URL, DEVIN_MODEL, DEVIN_APPROVAL_POLICY.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from devin_agent.errors import DevinError
from devin_agent.policy import DEFAULT_MODEL, ApprovalPolicy
from devin_agent.transport.http import DEFAULT_BASE_URL

CONFIG_FILE = Path.home() / ".devin" / "config.json"

ENV_OVERRIDES = {
    "DEVIN_API_KEY": "api_key",
    "DEVIN_BASE_URL": "base_url",
    "DEVIN_MODEL": "model",
    "DEVIN_APPROVAL_POLICY": "approval_policy",
}


class AppConfig(BaseModel):
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    approval_policy: str = ApprovalPolicy.SUGGEST
    poll_interval: float = 2.0


def read_config_file(path: Path = CONFIG_FILE) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def write_config_file(data: dict[str, Any], path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    try:
        path.chmod(0o600)
    except OSError:
        pass


def load_config(path: Path = CONFIG_FILE, env: Optional[dict[str, str]] = None, **overrides: Any) -> AppConfig:
    """File values, then environment, then explicit non-None ``overrides``."""
    data = read_config_file(path)
    environ = os.environ if env is None else env
    for var, field in ENV_OVERRIDES.items():
        if environ.get(var):
            data[field] = environ[var]
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise DevinError("config_error", f"Invalid configuration in {path}: {e.error_count()} errors") from e
