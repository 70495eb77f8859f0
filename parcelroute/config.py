"""
Configuration module.

Non-secret settings are centralized in config.yaml - modify there, not in code.
API keys and per-deployment overrides come from environment variables.
The resulting Config object is passed explicitly to every adapter.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any

import yaml

from .errors import ConfigurationError
from .models.pricing import PricingTier

__all__ = [
    "Config",
    "ConfigurationError",
    "get_yaml_setting",
    "is_placeholder",
    "load_config",
    "require_credential",
]

# Load YAML config once at module level
_CONFIG_PATH = Path(__file__).parent / "config.yaml"
_YAML_CONFIG: dict = {}

# Values shipped in .env.example files and never replaced.
_PLACEHOLDER_RE = re.compile(
    r"^(your[_-].*|.*[_-]here|<.*>|changeme|change[_-]me|x{3,}|todo|none|null)$",
    re.IGNORECASE,
)


def _load_yaml_config() -> dict:
    """Load configuration from config.yaml file."""
    global _YAML_CONFIG
    if not _YAML_CONFIG:
        if _CONFIG_PATH.exists():
            with open(_CONFIG_PATH, "r", encoding="utf-8") as f:
                _YAML_CONFIG = yaml.safe_load(f)
        else:
            raise ConfigurationError(
                "configuration_error", detail=f"Configuration file not found: {_CONFIG_PATH}"
            )
    return _YAML_CONFIG


def get_yaml_setting(*keys: str, default: Any = None) -> Any:
    """
    Get a setting from config.yaml using dot notation.

    Example: get_yaml_setting("routing", "circuity_factor") -> 1.3
    """
    config = _load_yaml_config()
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def get_optional_env(key: str) -> Optional[str]:
    """Get an optional environment variable. Returns None if not set."""
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def is_placeholder(value: Optional[str]) -> bool:
    """True for missing, blank or obviously templated credentials."""
    if value is None:
        return True
    value = value.strip()
    return not value or bool(_PLACEHOLDER_RE.match(value))


def require_credential(value: Optional[str], service: str, env_var: str, scope: str) -> str:
    """Return the credential or raise ConfigurationError naming the variable to set."""
    if is_placeholder(value):
        raise ConfigurationError(
            "credential_missing", service=service, env_var=env_var, scope=scope
        )
    return value.strip()


@dataclass(frozen=True)
class Config:
    """Application configuration - immutable after creation."""

    # API credentials (validated lazily by the adapter that needs them)
    google_maps_api_key: Optional[str] = None
    yandex_geocoder_api_key: Optional[str] = None
    ors_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    nominatim_user_agent: Optional[str] = None

    # Provider selection
    geocoder_provider: str = "google"
    geocoder_fallbacks: tuple[str, ...] = ()
    router_provider: str = "google"
    pricing_engine: str = "tiers"

    # Behaviour
    http_timeout_s: float = 10.0
    min_query_length: int = 3
    max_results: int = 5
    language: str = "ru"
    max_suggestions: int = 5
    debounce_ms: int = 300
    fallback_estimate: bool = True
    circuity_factor: float = 1.3
    ors_profile: str = "driving-car"
    osrm_base_url: str = "https://router.project-osrm.org"
    currency: str = "руб."
    default_tiers: tuple[PricingTier, ...] = ()
    default_locale: str = "ru"
    gemini_pricing_model: str = "gemini-2.5-flash"

    # Server settings
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from config.yaml and environment variables."""

        def env_or_yaml(env_key: str, *keys: str, default: Any = None) -> Any:
            value = get_optional_env(env_key)
            return value if value is not None else get_yaml_setting(*keys, default=default)

        cors = get_optional_env("CORS_ORIGINS")
        cors_origins = (
            [origin.strip() for origin in cors.split(",")]
            if cors
            else list(get_yaml_setting("server", "cors_origins", default=["*"]))
        )

        tiers = tuple(
            PricingTier.model_validate(t)
            for t in get_yaml_setting("pricing", "default_tiers", default=[])
        )

        return cls(
            google_maps_api_key=get_optional_env("GOOGLE_MAPS_API_KEY"),
            yandex_geocoder_api_key=get_optional_env("YANDEX_GEOCODER_API_KEY"),
            ors_api_key=get_optional_env("ORS_API_KEY"),
            gemini_api_key=get_optional_env("GEMINI_API_KEY"),
            nominatim_user_agent=get_optional_env("NOMINATIM_USER_AGENT"),
            geocoder_provider=env_or_yaml("GEOCODER_PROVIDER", "providers", "geocoder", default="google"),
            geocoder_fallbacks=tuple(get_yaml_setting("providers", "geocoder_fallbacks", default=[])),
            router_provider=env_or_yaml("ROUTER_PROVIDER", "providers", "router", default="google"),
            pricing_engine=env_or_yaml("PRICING_ENGINE", "pricing", "engine", default="tiers"),
            http_timeout_s=float(get_yaml_setting("http", "timeout_seconds", default=10)),
            min_query_length=int(get_yaml_setting("geocoding", "min_query_length", default=3)),
            max_results=int(get_yaml_setting("geocoding", "max_results", default=5)),
            language=get_yaml_setting("geocoding", "language", default="ru"),
            max_suggestions=int(get_yaml_setting("suggest", "max_suggestions", default=5)),
            debounce_ms=int(get_yaml_setting("suggest", "debounce_ms", default=300)),
            fallback_estimate=bool(get_yaml_setting("routing", "fallback_estimate", default=True)),
            circuity_factor=float(get_yaml_setting("routing", "circuity_factor", default=1.3)),
            ors_profile=get_yaml_setting("routing", "ors_profile", default="driving-car"),
            osrm_base_url=get_yaml_setting(
                "routing", "osrm_base_url", default="https://router.project-osrm.org"
            ),
            currency=get_yaml_setting("pricing", "currency", default="руб."),
            default_tiers=tiers,
            default_locale=env_or_yaml("DEFAULT_LOCALE", "localization", "default_locale", default="ru"),
            gemini_pricing_model=get_yaml_setting("gemini", "pricing_model", default="gemini-2.5-flash"),
            backend_host=env_or_yaml("BACKEND_HOST", "server", "host", default="0.0.0.0"),
            backend_port=int(env_or_yaml("BACKEND_PORT", "server", "port", default=8000)),
            cors_origins=cors_origins,
        )

    def validate_apis(self) -> dict[str, bool]:
        """Return which providers have usable credentials."""
        return {
            "google_maps": not is_placeholder(self.google_maps_api_key),
            "yandex_geocoder": not is_placeholder(self.yandex_geocoder_api_key),
            "nominatim": not is_placeholder(self.nominatim_user_agent),
            "osrm": True,  # Public server, no key needed
            "ors": not is_placeholder(self.ors_api_key),
            "gemini": not is_placeholder(self.gemini_api_key),
        }


def load_config() -> Config:
    """Load and validate configuration."""
    from dotenv import load_dotenv
    from .processing.pricing import validate_tiers

    # Load .env file if present
    load_dotenv()

    config = Config.from_env()
    # Malformed admin tiers fail here rather than on the first quote
    validate_tiers(config.default_tiers)
    return config
