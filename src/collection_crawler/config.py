"""Shared configuration contracts and validation helpers for collection-crawler."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from .errors import ConfigError

VALID_BROWSER_ENGINES = {"chromium", "firefox", "webkit"}
VALID_WAIT_POLICIES = {"commit", "domcontentloaded", "load", "networkidle"}
DEFAULT_CONFIG_FILENAME = "config.toml"
CONFIG_ENV_VAR = "COLLECTION_CRAWLER_CONFIG"

DEFAULT_CONFIG_TEMPLATE = """[app]
debug = false
event_log = ""

[crawl]
max_scrolls = 10
collection_max_scrolls = 5
settle_delay_ms = 2000
stall_threshold = 2
collection_delay_ms = 2000
navigation_wait_until = "domcontentloaded"
item_ready_selector = "article"
item_ready_timeout_ms = 10000
navigation_retries = 0
retry_base_delay_ms = 1000
resume = false

[checkpoint]
path = "saved.json"
indent = 2

[browser]
engine = "chromium"
headless = true
navigation_timeout_ms = 30000
action_timeout_ms = 10000
locale = "en-US"
viewport_width = 1280
viewport_height = 720
storage_state = ""
start_url = ""
"""


@dataclass(frozen=True)
class AppConfig:
    debug: bool = False
    event_log: str | None = None


@dataclass(frozen=True)
class CrawlConfig:
    max_scrolls: int = 10
    collection_max_scrolls: int = 5
    settle_delay_ms: int = 2_000
    stall_threshold: int = 2
    collection_delay_ms: int = 2_000
    navigation_wait_until: str = "domcontentloaded"
    item_ready_selector: str | None = "article"
    item_ready_timeout_ms: int = 10_000
    navigation_retries: int = 0
    retry_base_delay_ms: int = 1_000
    resume: bool = False


@dataclass(frozen=True)
class CheckpointConfig:
    path: str = "saved.json"
    indent: int = 2


@dataclass(frozen=True)
class BrowserConfig:
    engine: str = "chromium"
    headless: bool = True
    navigation_timeout_ms: int = 30_000
    action_timeout_ms: int = 10_000
    locale: str = "en-US"
    viewport_width: int = 1280
    viewport_height: int = 720
    storage_state: str | None = None
    start_url: str | None = None


@dataclass(frozen=True)
class RuntimeConfig:
    app: AppConfig = field(default_factory=AppConfig)
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    checkpoint: CheckpointConfig = field(default_factory=CheckpointConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)


def default_config() -> RuntimeConfig:
    return RuntimeConfig()


def default_config_toml() -> str:
    return DEFAULT_CONFIG_TEMPLATE


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    if config_path:
        return Path(config_path).expanduser()

    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()

    config_dir = Path(user_config_dir("collection-crawler", appauthor=False))
    return config_dir / DEFAULT_CONFIG_FILENAME


def init_default_config(config_path: str | Path | None = None, force: bool = False) -> Path:
    path = resolve_config_path(config_path)
    if path.exists() and path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; expected a TOML file path (for example '{path / DEFAULT_CONFIG_FILENAME}')."
        )
    if path.exists() and not force:
        raise ConfigError(f"Config file already exists at '{path}'. Pass force=True to overwrite.")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_toml(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not write config file at '{path}': {exc}. "
            "Check path permissions or choose a writable location."
        ) from exc
    return path


def load_runtime_config(config_path: str | Path | None = None) -> RuntimeConfig:
    path = resolve_config_path(config_path)
    if not path.exists():
        raise ConfigError(
            f"Config file not found at '{path}'. Generate defaults with init_default_config('{path}')."
        )
    if path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; pass a file path ending in '{DEFAULT_CONFIG_FILENAME}'."
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not read config file '{path}': {exc}. "
            "Check file permissions and that the path points to a readable TOML file."
        ) from exc
    return parse_runtime_config(_load_toml(text, path))


def config_to_dict(config: RuntimeConfig) -> dict[str, Any]:
    return asdict(config)


def _load_toml(text: str, path: Path) -> dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Config file '{path}' contains invalid TOML: {exc}. "
            "Fix the syntax or regenerate defaults with init_default_config(force=True)."
        ) from exc
    return data


def parse_runtime_config(data: dict[str, Any]) -> RuntimeConfig:
    app_raw = _expect_table(data, "app")
    crawl_raw = _expect_table(data, "crawl")
    checkpoint_raw = _expect_table(data, "checkpoint")
    browser_raw = _expect_table(data, "browser")

    app_config = AppConfig(
        debug=_expect_bool(app_raw, "app.debug", default=False),
        event_log=_expect_optional_string(app_raw, "app.event_log"),
    )

    crawl_config = CrawlConfig(
        max_scrolls=_expect_non_negative_int(crawl_raw, "crawl.max_scrolls", default=10),
        collection_max_scrolls=_expect_non_negative_int(
            crawl_raw, "crawl.collection_max_scrolls", default=5
        ),
        settle_delay_ms=_expect_non_negative_int(crawl_raw, "crawl.settle_delay_ms", default=2_000),
        stall_threshold=_expect_positive_int(crawl_raw, "crawl.stall_threshold", default=2),
        collection_delay_ms=_expect_non_negative_int(
            crawl_raw, "crawl.collection_delay_ms", default=2_000
        ),
        navigation_wait_until=_expect_choice(
            crawl_raw,
            "crawl.navigation_wait_until",
            default="domcontentloaded",
            valid_values=VALID_WAIT_POLICIES,
        ),
        item_ready_selector=_expect_optional_string(
            crawl_raw, "crawl.item_ready_selector", default="article"
        ),
        item_ready_timeout_ms=_expect_positive_int(
            crawl_raw, "crawl.item_ready_timeout_ms", default=10_000
        ),
        navigation_retries=_expect_non_negative_int(crawl_raw, "crawl.navigation_retries", default=0),
        retry_base_delay_ms=_expect_non_negative_int(
            crawl_raw, "crawl.retry_base_delay_ms", default=1_000
        ),
        resume=_expect_bool(crawl_raw, "crawl.resume", default=False),
    )

    checkpoint_config = CheckpointConfig(
        path=_expect_non_empty_string(checkpoint_raw, "checkpoint.path", "saved.json"),
        indent=_expect_non_negative_int(checkpoint_raw, "checkpoint.indent", default=2),
    )

    browser_config = BrowserConfig(
        engine=_expect_choice(
            browser_raw,
            "browser.engine",
            default="chromium",
            valid_values=VALID_BROWSER_ENGINES,
        ),
        headless=_expect_bool(browser_raw, "browser.headless", default=True),
        navigation_timeout_ms=_expect_positive_int(
            browser_raw, "browser.navigation_timeout_ms", default=30_000
        ),
        action_timeout_ms=_expect_positive_int(browser_raw, "browser.action_timeout_ms", default=10_000),
        locale=_expect_non_empty_string(browser_raw, "browser.locale", "en-US"),
        viewport_width=_expect_positive_int(browser_raw, "browser.viewport_width", default=1280),
        viewport_height=_expect_positive_int(browser_raw, "browser.viewport_height", default=720),
        storage_state=_expect_optional_string(browser_raw, "browser.storage_state"),
        start_url=_expect_optional_string(browser_raw, "browser.start_url"),
    )

    return RuntimeConfig(
        app=app_config,
        crawl=crawl_config,
        checkpoint=checkpoint_config,
        browser=browser_config,
    )


def _expect_table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"Invalid [{key}] table: expected table, got {type(value).__name__}.")
    return value


def _expect_non_empty_string(data: dict[str, Any], key: str, default: str | None) -> str:
    field_name = key.split(".")[-1]
    if field_name in data:
        value = data[field_name]
    else:
        if default is None:
            raise ConfigError(f"Missing required value '{key}'.")
        value = default

    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid value for '{key}': expected non-empty string.")
    return value


def _expect_optional_string(
    data: dict[str, Any], key: str, default: str | None = None
) -> str | None:
    field_name = key.split(".")[-1]
    if field_name not in data:
        return default
    value = data[field_name]
    if not isinstance(value, str):
        raise ConfigError(f"Invalid value for '{key}': expected string.")
    # Empty string disables the option.
    return value.strip() or None


def _expect_positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key.split(".")[-1], default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"Invalid value for '{key}': expected positive integer.")
    return value


def _expect_non_negative_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key.split(".")[-1], default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"Invalid value for '{key}': expected integer >= 0.")
    return value


def _expect_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key.split(".")[-1], default)
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid value for '{key}': expected boolean true/false.")
    return value


def _expect_choice(
    data: dict[str, Any],
    key: str,
    default: str,
    valid_values: set[str],
) -> str:
    value = data.get(key.split(".")[-1], default)
    if not isinstance(value, str) or value not in valid_values:
        choices = ", ".join(sorted(valid_values))
        raise ConfigError(f"Invalid value for '{key}': expected one of [{choices}].")
    return value
