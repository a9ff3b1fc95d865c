"""
Settings for zenkit-cli.

Values come from the process environment, filled in from an env file
(``-c PATH``, else ``$AGENTS_ENV_PATH``, else ``~/AGENTS.env``). Variables
already set in the environment take precedence over the file.

    ZENKIT_TOKEN      API token (ZENKIT_API_TOKEN is accepted, deprecated)
    ZENKIT_WORKSPACE  default workspace name, id or uuid
    ZENKIT_ENDPOINT   API base url
    ZENKIT_TIMEOUT    request timeout in seconds
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from zenkit_api import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT


class ConfigError(Exception):
    """Required setting missing or invalid."""


@dataclass(frozen=True)
class Settings:
    token: str
    workspace: Optional[str] = None
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT


def default_env_path() -> str:
    return os.environ.get("AGENTS_ENV_PATH", os.path.expanduser("~/AGENTS.env"))


def load_env_file(path: Optional[str] = None) -> None:
    """Load key=value lines into os.environ without overriding what is set."""
    if path is not None:
        if not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")
        load_dotenv(path, override=False)
        return
    env_path = default_env_path()
    if os.path.exists(env_path):
        load_dotenv(env_path, override=False)
    else:
        logging.debug("No env file at %s", env_path)


def load_settings(
    path: Optional[str] = None,
    workspace: Optional[str] = None,
    require_workspace: bool = True,
) -> Settings:
    load_env_file(path)

    token = os.environ.get("ZENKIT_TOKEN")
    if not token:
        token = os.environ.get("ZENKIT_API_TOKEN")
        if token:
            logging.warning("ZENKIT_API_TOKEN is deprecated; use ZENKIT_TOKEN")
    if not token:
        raise ConfigError(
            "Missing zenkit token. Add ZENKIT_TOKEN to the config file given with -c, or set it in the environment"
        )

    workspace = workspace or os.environ.get("ZENKIT_WORKSPACE") or None
    if require_workspace and not workspace:
        raise ConfigError(
            "Workspace must be given with -w, in the config file, or in the environment as ZENKIT_WORKSPACE"
        )

    raw_timeout = os.environ.get("ZENKIT_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError:
        raise ConfigError(f"ZENKIT_TIMEOUT must be a number of seconds, got {raw_timeout!r}")

    return Settings(
        token=token,
        workspace=workspace,
        endpoint=os.environ.get("ZENKIT_ENDPOINT") or DEFAULT_ENDPOINT,
        timeout=timeout,
    )
