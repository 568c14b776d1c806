"""Application configuration for the catalog synchronization tool."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

import yaml
from dotenv import load_dotenv
from openai import AsyncOpenAI

from catalog_sync.errors import ConfigError
from catalog_sync.logging_config import setup_logger

DEFAULT_LIVE_SOURCE_URL = "https://app.epanetjs.com/locales/en/translation.json"
DEFAULT_TRUNCATE_SUFFIX = "... Review the commit for full details"


@dataclass
class TargetLanguage:
    code: str
    name: str


@dataclass
class ReportSettings:
    """Where and how the per-run notification payload is written."""
    enabled: bool = False
    output_file: str = "slack-payload.json"
    max_characters: int = 3000
    truncate_suffix: str = DEFAULT_TRUNCATE_SUFFIX
    sample_language: str = "es"
    commit_url: str = ""


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Core paths
    live_source_url: str
    locales_dir: str
    namespace: str
    source_language: str

    # Language configuration
    target_languages: List[TargetLanguage]

    # Pipeline settings
    chunk_size: int
    max_retries: int
    retry_base_delay_ms: int
    dry_run: bool
    language_filter: Optional[str]

    # Model configuration
    model_name: str
    max_model_tokens: int
    request_timeout: float
    rate_limit_per_minute: int

    report: ReportSettings = field(default_factory=ReportSettings)

    # OpenAI client
    openai_client: Optional[AsyncOpenAI] = None


def _compute_project_root() -> str:
    """The directory the tool is launched from; relative paths resolve against it."""
    return os.path.abspath(os.getcwd())


def _load_dotenv_files(project_root: str) -> List[str]:
    """Load .env and .env.local from the project root. Returns the files that were loaded."""
    loaded = []
    for name in ('.env', '.env.local'):
        dotenv_path = os.path.join(project_root, name)
        if os.path.exists(dotenv_path):
            load_dotenv(dotenv_path)
            loaded.append(dotenv_path)
    return loaded


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to defaults when it is absent or unreadable."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('CATALOG_SYNC_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            print(f"Tip: Create a config.yaml file in '{project_root}' or set CATALOG_SYNC_CONFIG_FILE.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except (OSError, IOError) as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes')


def _int_setting(config: Dict[str, Any], key: str, env_name: str, default: int, minimum: int) -> int:
    """Read an integer setting, letting ``env_name`` override the YAML value."""
    raw = os.environ.get(env_name, config.get(key, default))
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Setting '{key}' must be an integer, got {raw!r}.")
    if value < minimum:
        raise ConfigError(f"Setting '{key}' must be at least {minimum}, got {value}.")
    return value


def _float_setting(config: Dict[str, Any], key: str, env_name: str, default: float) -> float:
    """Read a positive number of seconds, letting ``env_name`` override the YAML value."""
    raw = os.environ.get(env_name, config.get(key, default))
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Setting '{key}' must be a number, got {raw!r}.")
    if value <= 0:
        raise ConfigError(f"Setting '{key}' must be greater than 0, got {value}.")
    return value


def _setup_logger_from_config(config: Dict[str, Any], verbose: bool) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = 'DEBUG' if verbose else log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/catalog_sync.log')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _build_target_languages(locales_list: List[Dict[str, str]], source_language: str) -> List[TargetLanguage]:
    """Build the ordered target language list from supported locales, skipping the source language."""
    target_languages: List[TargetLanguage] = []
    for locale in locales_list:
        code = locale.get('code')
        name = locale.get('name')
        if code and name and code != source_language:
            target_languages.append(TargetLanguage(code=code, name=name))
    return target_languages


def _resolve_commit_url(live_source_url: str) -> str:
    """Link to the triggering commit in CI, or to the live source for local runs."""
    repository = os.environ.get('GITHUB_REPOSITORY')
    sha = os.environ.get('GITHUB_SHA')
    if _env_flag('GITHUB_ACTIONS', False) and repository and sha:
        server = os.environ.get('GITHUB_SERVER_URL', 'https://github.com')
        return f"{server}/{repository}/commit/{sha}"
    return live_source_url


def _build_report_settings(config: Dict[str, Any], live_source_url: str) -> ReportSettings:
    report_config = config.get('report', {}) or {}
    truncate_suffix = report_config.get('truncate_suffix', DEFAULT_TRUNCATE_SUFFIX)
    return ReportSettings(
        enabled=_env_flag('GITHUB_ACTIONS', report_config.get('enabled', False)),
        output_file=report_config.get('output_file', 'slack-payload.json'),
        max_characters=_int_setting(report_config, 'max_characters', 'REPORT_MAX_CHARACTERS', 3000,
                                    len(truncate_suffix) + 1),
        truncate_suffix=truncate_suffix,
        sample_language=report_config.get('sample_language', 'es'),
        commit_url=_resolve_commit_url(live_source_url),
    )


def _create_openai_client(logger: logging.Logger) -> AsyncOpenAI:
    """
    Create the OpenAI client.

    Dry runs still translate and validate, so the key is always required.
    """
    api_key_from_env = os.environ.get('OPENAI_API_KEY')
    if not api_key_from_env:
        logger.critical("CRITICAL: OPENAI_API_KEY environment variable not found.")
        logger.critical("Please set OPENAI_API_KEY in the environment or in .env.local.")
        sys.exit(1)

    if not api_key_from_env.startswith('sk-'):
        logger.warning("Warning: OPENAI_API_KEY does not start with 'sk-'. This may be invalid.")

    client = AsyncOpenAI(api_key=api_key_from_env)
    logger.info("OpenAI client initialized successfully")
    return client


def load_app_config() -> AppConfig:
    """
    Load application configuration from the YAML file and environment variables.

    Returns:
        AppConfig: The loaded application configuration.

    Raises:
        ConfigError: If a numeric setting is invalid.
    """
    project_root = _compute_project_root()

    loaded_dotenv_files = _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root)

    verbose = _env_flag('VERBOSE', config.get('verbose', False))
    logger = _setup_logger_from_config(config, verbose)

    if loaded_dotenv_files:
        for dotenv_path in loaded_dotenv_files:
            logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info("No .env file found in '%s'. Relying on system environment variables if any.", project_root)

    source_language = config.get('source_language', 'en')
    target_languages = _build_target_languages(config.get('supported_locales', []), source_language)

    live_source_url = config.get('live_source_url', DEFAULT_LIVE_SOURCE_URL)
    locales_dir = config.get('locales_dir', 'locales')
    if not os.path.isabs(locales_dir):
        locales_dir = os.path.join(project_root, locales_dir)

    language_filter = os.environ.get('LANGUAGE_FILTER', config.get('language_filter')) or None

    chunk_size = _int_setting(config, 'chunk_size', 'CHUNK_SIZE', 150, 1)
    max_retries = _int_setting(config, 'max_retries', 'MAX_RETRIES', 3, 1)
    retry_base_delay_ms = _int_setting(config, 'retry_base_delay_ms', 'RETRY_BASE_DELAY_MS', 800, 0)

    openai_client = _create_openai_client(logger)

    return AppConfig(
        live_source_url=live_source_url,
        locales_dir=locales_dir,
        namespace=config.get('namespace', 'translation'),
        source_language=source_language,
        target_languages=target_languages,
        chunk_size=chunk_size,
        max_retries=max_retries,
        retry_base_delay_ms=retry_base_delay_ms,
        dry_run=_env_flag('DRY_RUN', config.get('dry_run', False)),
        language_filter=language_filter,
        model_name=os.environ.get('MODEL_NAME', config.get('model_name', 'gpt-4o-mini')),
        max_model_tokens=_int_setting(config, 'max_model_tokens', 'MAX_MODEL_TOKENS', 128000, 1),
        request_timeout=_float_setting(config, 'request_timeout', 'REQUEST_TIMEOUT', 120.0),
        rate_limit_per_minute=_int_setting(config, 'rate_limit_per_minute', 'RATE_LIMIT_PER_MINUTE', 60, 1),
        report=_build_report_settings(config, live_source_url),
        openai_client=openai_client
    )
