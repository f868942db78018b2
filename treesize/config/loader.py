from __future__ import annotations

import json

from result import Err, Ok, Result

from treesize.config.defaults import default_config
from treesize.config.schema import AppConfig, from_dict
from treesize.services.fs import DEFAULT_FS, FileSystem

CONFIG_PATH = "~/.config/treesize/config.json"


def load_config(path: str | None = None, fs: FileSystem = DEFAULT_FS) -> Result[AppConfig, str]:
    """Load the JSON config, falling back to defaults when none exists.

    An explicitly requested *path* that does not exist is reported as an
    error; the per-user default location is optional.
    """
    if path is None:
        resolved = fs.expanduser(CONFIG_PATH)
        if not fs.exists(resolved):
            return Ok(default_config())
    else:
        resolved = fs.expanduser(path)
        if not fs.exists(resolved):
            return Err(f"Config file {resolved} does not exist.")

    try:
        payload = json.loads(fs.read_text(resolved))
    except (OSError, ValueError) as exc:
        return Err(f"Failed reading config at {resolved}: {exc}.")
    if not isinstance(payload, dict):
        return Err(f"Config at {resolved} must be a JSON object.")
    try:
        return Ok(from_dict(payload, default_config()))
    except (TypeError, ValueError) as exc:
        return Err(f"Invalid config at {resolved}: {exc}.")


def sample_config_json() -> str:
    return json.dumps(default_config().to_dict(), indent=2)
