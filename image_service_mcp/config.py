"""
Image Service Configuration

Resolves the service base URL and API key.

Sources, highest priority first:
- IMAGE_SERVICE_URL / IMAGE_SERVICE_API_KEY environment variables
  (a .env file in the working directory is loaded first)
- YAML config file (--config or IMAGE_SERVICE_CONFIG):

    image-service:
      url: https://images.example.com
      apiKey: ${IMAGE_SERVICE_KEY}
      categoriesPath: /api/size/list
      timeout: 30

- positional command-line arguments: <image-service-url> <api-key>
"""

import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_URL = "IMAGE_SERVICE_URL"
ENV_API_KEY = "IMAGE_SERVICE_API_KEY"
ENV_CONFIG = "IMAGE_SERVICE_CONFIG"
CONFIG_SECTION = "image-service"

DEFAULT_CATEGORIES_PATH = "/api/size/list"

USAGE = "Usage: image-service-mcp <image-service-url> <image-service-api-key>"

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _expand_env_vars(value: str) -> str:
    """Expand environment variables in string.

    Supports:
    - ${VAR} - required variable
    - ${VAR:-default} - variable with default value
    """
    def replacer(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.environ.get(var_name, default)
        else:
            return os.environ.get(var_expr, "")

    return re.sub(r'\$\{([^}]+)\}', replacer, value)


def _expand_env_dict(env_dict: dict) -> dict:
    """Expand environment variables in a dictionary."""
    return {k: _expand_env_vars(v) if isinstance(v, str) else v
            for k, v in env_dict.items()}


def load_env_file(path: Optional[Path] = None) -> bool:
    """Load .env from the launch directory (or a given path) if present"""
    env_path = path or Path.cwd() / ".env"
    if env_path.exists():
        return load_dotenv(env_path)
    return False


def load_yaml_section(config_path: str | Path) -> dict:
    """
    Read the image-service section of a YAML config file

    Args:
        config_path: YAML file path

    Returns:
        Section with ${VAR} references expanded (empty if absent)
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    section = config.get(CONFIG_SECTION) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{CONFIG_SECTION}' in {config_path} must be a mapping")
    logger.debug(f"Loaded {CONFIG_SECTION} config from {config_path}")
    return _expand_env_dict(section)


def _first_non_empty(*values: Optional[str]) -> str:
    for value in values:
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return ""


@dataclass
class ServiceConfig:
    """Resolved process configuration"""
    base_url: str
    api_key: str = ""
    categories_path: str = DEFAULT_CATEGORIES_PATH
    timeout: Optional[float] = None     # None: no timeout on outbound calls

    def __post_init__(self):
        self.base_url = self.base_url.strip().rstrip("/")
        if not self.base_url:
            raise ConfigurationError(USAGE)
        if not self.categories_path.startswith("/"):
            self.categories_path = "/" + self.categories_path

    @classmethod
    def resolve(
        cls,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        config_path: Optional[str | Path] = None,
        categories_path: Optional[str] = None,
        environ: Optional[dict] = None,
    ) -> "ServiceConfig":
        """
        Resolve configuration from env, YAML file and positional defaults

        Args:
            url: Positional base URL (lowest priority)
            api_key: Positional API key (lowest priority)
            config_path: YAML config file; falls back to IMAGE_SERVICE_CONFIG
            categories_path: Overrides the listing endpoint variant
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ConfigurationError: base URL is empty after resolution
        """
        env = os.environ if environ is None else environ

        config_path = config_path or env.get(ENV_CONFIG)
        section = load_yaml_section(config_path) if config_path else {}

        timeout = section.get("timeout")
        try:
            timeout = float(timeout) if timeout not in (None, "") else None
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid timeout: {timeout!r}") from e

        return cls(
            base_url=_first_non_empty(env.get(ENV_URL), section.get("url"), url),
            api_key=_first_non_empty(env.get(ENV_API_KEY), section.get("apiKey"), api_key),
            categories_path=_first_non_empty(
                categories_path, section.get("categoriesPath"), DEFAULT_CATEGORIES_PATH
            ),
            timeout=timeout,
        )


def configure_logging(level: str = "INFO") -> None:
    """Send log lines to stderr; stdout is reserved for JSON-RPC."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO; the client logs its own summary
    logging.getLogger("httpx").setLevel(logging.WARNING)
