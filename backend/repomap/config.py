import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values, load_dotenv

from repomap.errors import ApiKeyNotFoundError, RepomapError

API_KEY_VAR = "LLM_API_KEY"

GLOBAL_CONFIG_DIR = Path.home() / ".config" / "generateRepomap"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / ".env"

DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 300
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TITLE = "generateRepomap"

MODES = ("decomposed", "direct")


def get_api_key(
    env: Optional[Mapping[str, str]] = None,
    local_env_file: Optional[Path] = None,
    global_env_file: Optional[Path] = None,
) -> str:
    """
    Resolve the API key, in order:
    1. LLM_API_KEY environment variable
    2. local .env file (current directory)
    3. global config file (~/.config/generateRepomap/.env)
    """
    env = os.environ if env is None else env
    if env.get(API_KEY_VAR):
        return env[API_KEY_VAR]

    local_env_file = local_env_file or Path.cwd() / ".env"
    global_env_file = global_env_file or GLOBAL_CONFIG_FILE

    for candidate in (local_env_file, global_env_file):
        if not Path(candidate).is_file():
            continue
        try:
            values = dotenv_values(candidate)
        except (OSError, UnicodeDecodeError) as e:
            raise RepomapError(f"error reading config {candidate}: {e}") from e
        if values.get(API_KEY_VAR):
            return values[API_KEY_VAR]

    raise ApiKeyNotFoundError(
        f"api key not found. set {API_KEY_VAR} via env var, local .env, "
        f"or global config ({GLOBAL_CONFIG_FILE})."
    )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value in (None, ""):
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise RepomapError(f"{name} must be an integer, got '{value}'") from e
    if parsed < 1:
        raise RepomapError(f"{name} must be at least 1, got {parsed}")
    return parsed


@dataclass
class Settings:
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    referer: Optional[str] = None
    title: Optional[str] = DEFAULT_TITLE
    mode: str = "decomposed"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            # Load .env files without overriding the real environment
            load_dotenv(Path.cwd() / ".env")
            if GLOBAL_CONFIG_FILE.is_file():
                load_dotenv(GLOBAL_CONFIG_FILE)
            env = os.environ

        mode = env.get("REPOMAP_MODE") or "decomposed"
        if mode not in MODES:
            raise RepomapError(f"REPOMAP_MODE must be one of {', '.join(MODES)}, got '{mode}'")

        return cls(
            api_key=get_api_key(env),
            model=env.get("LLM_MODEL") or DEFAULT_MODEL,
            base_url=env.get("LLM_BASE_URL") or DEFAULT_BASE_URL,
            timeout=_int_setting(env, "LLM_TIMEOUT", DEFAULT_TIMEOUT),
            max_attempts=_int_setting(env, "LLM_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            referer=env.get("LLM_REFERER") or None,
            title=env.get("LLM_TITLE") or DEFAULT_TITLE,
            mode=mode,
        )
