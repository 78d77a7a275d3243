"""Run configuration for a changelist sync.

Reads Contentful connection settings and run inputs from CLI args,
environment variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CTF_SPACE_ID: Contentful space id (required)
    CTF_CDA_ACCESS_TOKEN: Content Delivery API token (required)
    CTF_CPA_ACCESS_TOKEN: Content Preview API token (required when a
        changelist lookup will run)
    CTF_ENVIRONMENT_ID: Content environment (optional, default: master)
    CTF_CHANGELIST_ID / INPUT_CTF-QUERY: Changelist identifier (optional)
    CTF_PREVIEW_ONLY: Skip the changelist lookup (optional, default: false)
    CTF_DEBUG_LEVEL: Verbosity 0-3 (optional, default: 0)
    ACTIONS_RUNNER_DEBUG: Raises verbosity to at least 2 when true
    CTF_OUTPUT_PATH: Merged snapshot destination (optional, default: ctf-sync.json)
    CTF_CONTEXT_PATH: Context sidecar destination (optional)
    CTF_CDA_HOST / CTF_CPA_HOST: API hosts (optional)
    CTF_LOCALE: Default locale for localized changelist fields (optional)
"""

import logging
import os
from dataclasses import dataclass

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = "ctf-sync.json"
MAX_VERBOSITY = 3


@dataclass
class Config:
    space_id: str
    delivery_token: str
    preview_token: str = ""
    environment_id: str = "master"
    changelist_id: str = ""
    preview_only: bool = False
    verbosity: int = 0
    output_path: str = DEFAULT_OUTPUT_PATH
    context_path: str | None = None
    delivery_host: str = "cdn.contentful.com"
    preview_host: str = "preview.contentful.com"
    changelist_content_type: str = "changelist"
    changelist_id_field: str = "changelistId"
    locale: str = "en-US"

    @property
    def needs_changelist_lookup(self) -> bool:
        return bool(self.changelist_id) and not self.preview_only


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigurationError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigurationError: If credentials are empty or values out of range.
    """
    config.space_id = config.space_id.strip()
    config.changelist_id = config.changelist_id.strip()

    if not config.space_id:
        raise ConfigurationError(
            "Contentful space id cannot be empty. Set CTF_SPACE_ID environment variable."
        )

    if not config.delivery_token.strip():
        raise ConfigurationError(
            "Delivery token cannot be empty. Set CTF_CDA_ACCESS_TOKEN environment variable."
        )

    if config.needs_changelist_lookup and not config.preview_token.strip():
        raise ConfigurationError(
            f"Changelist '{config.changelist_id}' requested but no preview token set. "
            "Set CTF_CPA_ACCESS_TOKEN environment variable."
        )

    if not config.environment_id.strip():
        raise ConfigurationError("Contentful environment id cannot be empty.")

    if not (0 <= config.verbosity <= MAX_VERBOSITY):
        raise ConfigurationError(
            f"Invalid verbosity {config.verbosity}: must be between 0 and {MAX_VERBOSITY}"
        )

    if not config.output_path.strip():
        raise ConfigurationError("Output path cannot be empty.")

    if config.preview_only and config.changelist_id:
        logger.info(
            "Preview-only mode: changelist '%s' will not be applied",
            config.changelist_id,
        )


_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset.

    Raises:
        ConfigurationError: If the value is not a recognised boolean.
    """
    val = os.getenv(key)
    if val is None or val.strip() == "":
        return None
    normalized = val.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Invalid {key} '{val}': expected one of "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES)}"
    )


def _get_verbosity_env() -> int | None:
    raw = os.getenv("CTF_DEBUG_LEVEL")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Invalid CTF_DEBUG_LEVEL '{raw}': must be a number between 0 and {MAX_VERBOSITY}"
        ) from None


def load_config(
    space_id: str | None = None,
    environment_id: str | None = None,
    changelist_id: str | None = None,
    preview_only: bool = False,
    verbosity: int | None = None,
    output_path: str | None = None,
    context_path: str | None = None,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        space_id: Override space id.
        environment_id: Override environment id.
        changelist_id: Override changelist identifier.
        preview_only: Skip the changelist lookup (CLI flag).
        verbosity: Diagnostic level 0-3 (CLI ``-v`` count).
        output_path: Override merged snapshot destination.
        context_path: Override context sidecar destination.
        yaml_fallbacks: Flat dict of values from the YAML config file.
            Used as fallback when CLI arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ConfigurationError: If required config is missing after checking
            all sources, or a value is malformed.
    """
    fb = yaml_fallbacks or {}

    # --- Credentials: CLI > env > YAML > error ---

    final_space = space_id or os.getenv("CTF_SPACE_ID") or fb.get("space_id")
    if not final_space:
        raise ConfigurationError(
            "Contentful space id not found. Set CTF_SPACE_ID environment variable, "
            "pass --space-id CLI argument, or add 'space_id' to config.yml."
        )

    delivery_token = os.getenv("CTF_CDA_ACCESS_TOKEN") or fb.get(
        "delivery_token"
    )
    if not delivery_token:
        raise ConfigurationError(
            "Delivery token not found. Set CTF_CDA_ACCESS_TOKEN environment variable "
            "or add 'delivery_token' to config.yml."
        )

    preview_token = (
        os.getenv("CTF_CPA_ACCESS_TOKEN") or fb.get("preview_token") or ""
    )

    # --- Run inputs ---

    final_environment = (
        environment_id
        or os.getenv("CTF_ENVIRONMENT_ID")
        or fb.get("environment_id")
        or "master"
    )

    if changelist_id is not None:
        final_changelist = changelist_id
    else:
        final_changelist = (
            os.getenv("CTF_CHANGELIST_ID")
            or os.getenv("INPUT_CTF-QUERY")
            or fb.get("changelist_id")
            or ""
        )

    if preview_only:
        final_preview_only = True
    else:
        env_preview = _get_bool_env("CTF_PREVIEW_ONLY")
        if env_preview is not None:
            final_preview_only = env_preview
        else:
            final_preview_only = bool(fb.get("preview_only", False))

    if verbosity:
        final_verbosity = verbosity
    else:
        env_verbosity = _get_verbosity_env()
        if env_verbosity is not None:
            final_verbosity = env_verbosity
        else:
            final_verbosity = int(fb.get("verbosity", 0))
        if _get_bool_env("ACTIONS_RUNNER_DEBUG"):
            final_verbosity = max(final_verbosity, 2)

    final_output = (
        output_path
        or os.getenv("CTF_OUTPUT_PATH")
        or fb.get("output_path")
        or DEFAULT_OUTPUT_PATH
    )
    final_context = (
        context_path
        or os.getenv("CTF_CONTEXT_PATH")
        or fb.get("context_path")
        or None
    )

    # --- Endpoint settings: env > YAML > default ---

    config = Config(
        space_id=final_space,
        delivery_token=delivery_token,
        preview_token=preview_token,
        environment_id=final_environment,
        changelist_id=final_changelist,
        preview_only=final_preview_only,
        verbosity=final_verbosity,
        output_path=final_output,
        context_path=final_context,
        delivery_host=os.getenv("CTF_CDA_HOST")
        or fb.get("delivery_host")
        or "cdn.contentful.com",
        preview_host=os.getenv("CTF_CPA_HOST")
        or fb.get("preview_host")
        or "preview.contentful.com",
        changelist_content_type=fb.get(
            "changelist_content_type", "changelist"
        ),
        changelist_id_field=fb.get("changelist_id_field", "changelistId"),
        locale=os.getenv("CTF_LOCALE") or fb.get("locale") or "en-US",
    )

    validate_config(config)

    return config
