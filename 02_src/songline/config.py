"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "songline.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]

REQUIRED_ENV = (
    "WA_VERIFY_TOKEN",
    "WA_ACCESS_TOKEN",
    "WA_PHONE_NUMBER_ID",
    "ANTHROPIC_API_KEY",
    "MINIMAX_API_KEY",
)


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class Settings:
    """Runtime settings, usually read from the environment."""

    wa_verify_token: str
    wa_access_token: str
    wa_phone_number_id: str
    anthropic_api_key: str
    minimax_api_key: str
    llm_model: str = "claude-sonnet-4-5"
    minimax_model: str = "music-2.5"
    graph_api_version: str = "v21.0"
    default_credits: int = 1
    history_limit: int = 15
    generation_timeout: float = 300.0
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: if a required variable is unset or a numeric
                variable cannot be parsed.
        """
        missing = [name for name in REQUIRED_ENV if not os.getenv(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        try:
            default_credits = int(os.getenv("DEFAULT_CREDITS", "1"))
            history_limit = int(os.getenv("HISTORY_LIMIT", "15"))
            generation_timeout = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "300"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if default_credits < 0:
            raise ConfigurationError("DEFAULT_CREDITS must be non-negative")

        return cls(
            wa_verify_token=os.environ["WA_VERIFY_TOKEN"],
            wa_access_token=os.environ["WA_ACCESS_TOKEN"],
            wa_phone_number_id=os.environ["WA_PHONE_NUMBER_ID"],
            anthropic_api_key=os.environ["ANTHROPIC_API_KEY"],
            minimax_api_key=os.environ["MINIMAX_API_KEY"],
            llm_model=os.getenv("LLM_MODEL", cls.llm_model),
            minimax_model=os.getenv("MINIMAX_MODEL", cls.minimax_model),
            graph_api_version=os.getenv("GRAPH_API_VERSION", cls.graph_api_version),
            default_credits=default_credits,
            history_limit=history_limit,
            generation_timeout=generation_timeout,
            database_url=os.getenv("DATABASE_URL"),
        )
