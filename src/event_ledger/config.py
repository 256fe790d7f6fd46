"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings.

Usage:
    from event_ledger.config import config

    # Access settings
    print(config.server.port)
    print(config.security.api_key)
    print(config.blob.enabled)

Environment Variable Mapping:
    LEDGER_HOST                   -> server.host
    LEDGER_PORT                   -> server.port
    LEDGER_API_KEY                -> security.api_key
    LEDGER_PRODUCTION             -> security.production
    LEDGER_CORS_ORIGINS           -> security.cors_origins
    LEDGER_DOCS_ENABLED           -> security.docs_enabled
    LEDGER_DB_PATH                -> database.path
    LEDGER_BLOB_ENABLED           -> blob.enabled
    LEDGER_BLOB_ROOT              -> blob.root
    LEDGER_BLOB_OFFLOAD_FIELD     -> blob.offload_field
    LEDGER_BLOB_INLINE_MAX_BYTES  -> blob.inline_max_bytes
    LEDGER_LOG_LEVEL              -> logging.level
    LEDGER_LOG_FORMAT             -> logging.format
    LEDGER_VERBOSE_ERRORS         -> features.verbose_errors
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


def _resolve_path(value: str) -> Path:
    p = Path(value)
    if p.is_absolute():
        return p
    return PROJECT_ROOT / p


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 8787


@dataclass
class SecuritySettings:
    """Security-related configuration.

    ``api_key`` is the shared secret checked on every non-documentation
    route. Leaving it unset disables the gate entirely.
    """

    api_key: str | None = None
    production: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    docs_enabled: Literal["auto", "enabled", "disabled"] = "auto"


@dataclass
class DatabaseSettings:
    """Database configuration."""

    path: str = "data/ledger.db"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to database file."""
        return _resolve_path(self.path)


@dataclass
class BlobSettings:
    """Blob offload configuration.

    Attributes:
        enabled: Store offloaded payload bytes under ``root``. When False the
            service runs in inline-only mode.
        root: Directory holding blob objects and their metadata sidecars.
        offload_field: Payload object key whose value is moved to the blob
            store and replaced by ``<offload_field>_pointer``.
        inline_max_bytes: Encoded payloads larger than this are offloaded as
            a whole. ``0`` disables size-based offload.
    """

    enabled: bool = False
    root: str = "data/blobs"
    offload_field: str = "data"
    inline_max_bytes: int = 0

    @property
    def absolute_root(self) -> Path:
        """Get absolute path to the blob root directory."""
        return _resolve_path(self.root)


@dataclass
class QuerySettings:
    """Event scan limits."""

    default_limit: int = 100
    max_limit: int = 500


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class FeatureSettings:
    """Feature flags."""

    verbose_errors: bool = False


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    blob: BlobSettings = field(default_factory=BlobSettings)
    query: QuerySettings = field(default_factory=QuerySettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    features: FeatureSettings = field(default_factory=FeatureSettings)

    @property
    def is_production(self) -> bool:
        """Convenience property for production mode check."""
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """Determine if API docs should be enabled based on settings."""
        if self.security.docs_enabled == "enabled":
            return True
        if self.security.docs_enabled == "disabled":
            return False
        # "auto" - follow production setting
        return not self.is_production


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Security section
    if parser.has_section("security"):
        if parser.has_option("security", "api_key"):
            cfg.security.api_key = parser.get("security", "api_key").strip() or None
        if parser.has_option("security", "production"):
            cfg.security.production = _parse_bool(parser.get("security", "production"))
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "docs_enabled"):
            val = parser.get("security", "docs_enabled").lower()
            if val in ("auto", "enabled", "disabled"):
                cfg.security.docs_enabled = val  # type: ignore[assignment]

    # Database section
    if parser.has_section("database"):
        if parser.has_option("database", "path"):
            cfg.database.path = parser.get("database", "path")

    # Blob section
    if parser.has_section("blob"):
        if parser.has_option("blob", "enabled"):
            cfg.blob.enabled = _parse_bool(parser.get("blob", "enabled"))
        if parser.has_option("blob", "root"):
            cfg.blob.root = parser.get("blob", "root")
        if parser.has_option("blob", "offload_field"):
            cfg.blob.offload_field = parser.get("blob", "offload_field").strip()
        if parser.has_option("blob", "inline_max_bytes"):
            cfg.blob.inline_max_bytes = parser.getint("blob", "inline_max_bytes")

    # Query section
    if parser.has_section("query"):
        if parser.has_option("query", "default_limit"):
            cfg.query.default_limit = parser.getint("query", "default_limit")
        if parser.has_option("query", "max_limit"):
            cfg.query.max_limit = parser.getint("query", "max_limit")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]

    # Features section
    if parser.has_section("features"):
        if parser.has_option("features", "verbose_errors"):
            cfg.features.verbose_errors = _parse_bool(parser.get("features", "verbose_errors"))


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("LEDGER_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("LEDGER_PORT"):
        cfg.server.port = int(env_port)

    # Security settings
    if env_api_key := os.getenv("LEDGER_API_KEY"):
        cfg.security.api_key = env_api_key
    if env_production := os.getenv("LEDGER_PRODUCTION"):
        cfg.security.production = _parse_bool(env_production)
    if env_cors := os.getenv("LEDGER_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)
    if env_docs := os.getenv("LEDGER_DOCS_ENABLED"):
        if env_docs.lower() in ("auto", "enabled", "disabled"):
            cfg.security.docs_enabled = env_docs.lower()  # type: ignore[assignment]

    # Database settings
    if env_db := os.getenv("LEDGER_DB_PATH"):
        cfg.database.path = env_db

    # Blob settings
    if env_blob_enabled := os.getenv("LEDGER_BLOB_ENABLED"):
        cfg.blob.enabled = _parse_bool(env_blob_enabled)
    if env_blob_root := os.getenv("LEDGER_BLOB_ROOT"):
        cfg.blob.root = env_blob_root
    if env_offload_field := os.getenv("LEDGER_BLOB_OFFLOAD_FIELD"):
        cfg.blob.offload_field = env_offload_field.strip()
    if env_inline_max := os.getenv("LEDGER_BLOB_INLINE_MAX_BYTES"):
        cfg.blob.inline_max_bytes = int(env_inline_max)

    # Logging settings
    if env_log := os.getenv("LEDGER_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_log_format := os.getenv("LEDGER_LOG_FORMAT"):
        if env_log_format.lower() in ("simple", "detailed", "json"):
            cfg.logging.format = env_log_format.lower()  # type: ignore[assignment]

    # Feature flags
    if env_verbose := os.getenv("LEDGER_VERBOSE_ERRORS"):
        cfg.features.verbose_errors = _parse_bool(env_verbose)


def load_config() -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    # Determine which config file to use
    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        config_file = CONFIG_EXAMPLE

    # Load from INI file if available
    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

# Load configuration once at module import time
config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information. The API key
    itself is never included, only whether one is configured.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "production_mode": config.is_production,
        "auth_enabled": bool(config.security.api_key),
        "blob_enabled": config.blob.enabled,
        "docs_enabled": config.docs_should_be_enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:       {config.server.host}:{config.server.port}")
    print(f"Production:   {config.is_production}")
    print(f"Auth enabled: {status['auth_enabled']}")
    print(f"Docs enabled: {config.docs_should_be_enabled}")
    print(f"Database:     {config.database.absolute_path}")
    if config.blob.enabled:
        print(f"Blob root:    {config.blob.absolute_root}")
    else:
        print("Blob root:    (disabled, inline payloads only)")
    print(f"Log level:    {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for using a temporary test database.

    This is the recommended way to set up test databases. It properly
    configures the config system to use a temporary database path.

    Usage:
        from event_ledger.config import use_test_database

        def test_something(tmp_path):
            db_path = tmp_path / "test.db"
            with use_test_database(db_path):
                # Database operations will use db_path
                database.init_database()

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test database path."""
        self.original_path = config.database.path
        config.database.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original database path."""
        if self.original_path is not None:
            config.database.path = self.original_path
        return None
