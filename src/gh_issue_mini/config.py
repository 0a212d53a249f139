"""Runtime settings resolved from explicit values, the environment and .env.

Resolution order for every setting (first match wins):
1. Explicitly provided value
2. Environment variable
3. .env file (loaded into the environment by python-dotenv)
4. Default value

Example:
    ```python
    from gh_issue_mini.config import Settings

    settings = Settings.from_env()
    settings = Settings.from_env(dotenv_path="/app/.env", log_level="DEBUG")
    ```
"""

import logging
import os
from dataclasses import dataclass
from threading import Lock

from dotenv import load_dotenv

from gh_issue_mini.auth.credentials import DEFAULT_TOKEN_ENV_VAR

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"

_dotenv_lock = Lock()
_dotenv_loaded = False


def ensure_dotenv_loaded(dotenv_path: str | None = None) -> None:
    """Load the .env file once per process (thread-safe).

    Existing environment variables are never overridden.
    """
    global _dotenv_loaded

    if _dotenv_loaded:
        return

    with _dotenv_lock:
        # Double-check pattern for thread safety
        if _dotenv_loaded:
            return

        try:
            load_dotenv(dotenv_path=dotenv_path)
            logger.debug("Loaded .env file for settings resolution")
        except Exception as e:
            logger.warning(f"Failed to load .env file: {e}")
        _dotenv_loaded = True


def resolve_setting(
    *,
    value: str | None = None,
    env_var_name: str | None = None,
    default: str | None = None,
    secret: bool = False,
) -> str | None:
    """Resolve one setting from an explicit value, the environment, or a default.

    Args:
        value: Explicitly provided value (highest priority).
        env_var_name: Environment variable name to check.
        default: Value used when no other source provides one.
        secret: If True, the value is masked in log messages.

    Returns:
        The resolved value, or None.
    """
    result = None
    source = None

    if value is not None:
        result = value
        source = "explicit parameter"
    elif env_var_name and os.environ.get(env_var_name):
        result = os.environ[env_var_name]
        source = f"environment variable '{env_var_name}'"
    elif default is not None:
        result = default
        source = "default value"

    if result is not None:
        shown = "***" if secret else result
        logger.debug(f"Resolved {env_var_name or 'setting'} from {source}: {shown}")

    return result


def _as_float(raw: str | None, name: str, default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """Settings for the GitHub issue client and server.

    Attributes:
        github_token: Personal access token, None when not configured.
        token_env_var: Variable the token is read from.
        api_base_url: GitHub REST API root.
        gh_executable: GitHub CLI binary used for the fallback credential.
        request_timeout: HTTP timeout in seconds.
        cli_timeout: Timeout for each GitHub CLI invocation in seconds.
        log_level: Logging level name for the server process.
    """

    github_token: str | None = None
    token_env_var: str = DEFAULT_TOKEN_ENV_VAR
    api_base_url: str = DEFAULT_API_BASE_URL
    gh_executable: str = "gh"
    request_timeout: float = 30.0
    cli_timeout: float = 15.0
    log_level: str = "ERROR"

    def __repr__(self) -> str:
        token = "***" if self.github_token else "None"
        return (
            f"Settings(github_token={token}, api_base_url={self.api_base_url!r}, "
            f"gh_executable={self.gh_executable!r}, log_level={self.log_level!r})"
        )

    @classmethod
    def from_env(
        cls,
        *,
        github_token: str | None = None,
        log_level: str | None = None,
        dotenv_path: str | None = None,
        load_dotenv: bool = True,
        token_env_var: str = DEFAULT_TOKEN_ENV_VAR,
    ) -> "Settings":
        """Build settings from explicit overrides, the environment and .env.

        Args:
            github_token: Explicit token, overriding the environment.
            log_level: Explicit log level, overriding the environment.
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories.
            load_dotenv: Set to False to skip .env loading (useful in tests).
            token_env_var: Variable holding the personal access token.
        """
        if load_dotenv:
            ensure_dotenv_loaded(dotenv_path)

        return cls(
            github_token=resolve_setting(value=github_token, env_var_name=token_env_var, secret=True),
            token_env_var=token_env_var,
            api_base_url=resolve_setting(env_var_name="GITHUB_API_BASE_URL", default=DEFAULT_API_BASE_URL).rstrip("/"),
            gh_executable=resolve_setting(env_var_name="GH_CLI_PATH", default="gh"),
            request_timeout=_as_float(
                resolve_setting(env_var_name="GITHUB_REQUEST_TIMEOUT"), "GITHUB_REQUEST_TIMEOUT", 30.0
            ),
            cli_timeout=_as_float(resolve_setting(env_var_name="GH_CLI_TIMEOUT"), "GH_CLI_TIMEOUT", 15.0),
            log_level=resolve_setting(value=log_level, env_var_name="GH_ISSUE_MINI_LOG_LEVEL", default="ERROR").upper(),
        )
