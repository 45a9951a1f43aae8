import json
import os
from dataclasses import dataclass, field
from typing import Optional

from .browser_automation import debug_print

# ============================================================
# DEFAULTS
# ============================================================
CONFIG_FILE = os.environ.get("STABFISH_CONFIG_FILE") or "config.json"

BASE_URL = "https://stabfish2.io"
PLAYER_NAME_TO_EXCLUDE = "Lost"
TARGET_SERVER_LOCATIONS = ["Silicon Valley", "Dallas", "Toronto"]

# DOM contract with stabfish2.io. Keys are referenced by the workflow and the
# extractor; values may be overridden per key through config.json "selectors".
DEFAULT_SELECTORS = {
    "name_input_id": "#playername",
    "name_input_class": "input.name-input",
    "name_input_generated": 'input[id^="__BVID__"]',
    "server_picker": ".btn-pink.w-100.funny-rounded",
    "server_row": ".server-data",
    "server_name": ".name",
    "modal_close": 'button[aria-label="Close"]',
    "play_button": ".btn-primary.btn-lg.w-100",
    "start_game_button": "button.btn-primary",
    "start_now_button": ".btn-pink.mr-3.btn-lg",
    "leaderboard_trigger": ".bar-button .fa-trophy",
    "leaderboard_list": ".utility-ranks .list",
    "rank_row": ".rank-item",
    "rank_name": ".name",
    "rank_score": ".score",
    "highlight_class": "text-yellow",
}

# Any one of these marks the home screen as hydrated.
DEFAULT_READY_SIGNALS = [
    "name_input_id",
    "name_input_class",
    "name_input_generated",
    "play_button",
]

TRANSIENT_NAVIGATION_MARKERS = [
    "frame was detached",
    "LifecycleWatcher",
    "Execution context was destroyed",
]

DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--single-process",
]


@dataclass(frozen=True)
class ScraperSettings:
    base_url: str = BASE_URL
    excluded_name: str = PLAYER_NAME_TO_EXCLUDE
    target_locations: tuple = tuple(TARGET_SERVER_LOCATIONS)
    selectors: dict = field(default_factory=lambda: dict(DEFAULT_SELECTORS))
    ready_signals: tuple = tuple(DEFAULT_READY_SIGNALS)
    transient_navigation_markers: tuple = tuple(TRANSIENT_NAVIGATION_MARKERS)

    navigation_attempts: int = 4
    navigation_timeout_ms: int = 15000
    navigation_settle_seconds: float = 0.5
    navigation_backoff_seconds: float = 0.4

    home_screen_attempts: int = 5
    home_screen_probe_timeout_ms: int = 6000

    click_timeout_ms: int = 5000
    click_settle_seconds: float = 0.25
    typing_delay_ms: int = 1
    typing_settle_seconds: float = 0.1

    picker_settle_seconds: float = 0.3
    game_start_settle_seconds: float = 1.2
    leaderboard_timeout_ms: int = 3000

    browser_engine: str = "chromium"
    headless: bool = True
    browser_args: tuple = tuple(DEFAULT_BROWSER_ARGS)
    chrome_executable: str = ""
    ignore_https_errors: bool = True

    def selector(self, key: str) -> str:
        return str(self.selectors.get(key) or DEFAULT_SELECTORS[key])

    def name_input_selectors(self) -> list[str]:
        return [
            self.selector("name_input_id"),
            self.selector("name_input_class"),
            self.selector("name_input_generated"),
        ]

    def ready_selectors(self) -> list[str]:
        return [self.selector(key) for key in self.ready_signals]


def get_config():
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        debug_print(f"⚠️  Config file error: {e}, using defaults")
        config = {}
    except Exception as e:
        debug_print(f"⚠️  Unexpected error reading config: {e}, using defaults")
        config = {}

    if not isinstance(config, dict):
        debug_print("⚠️  Config file is not a JSON object, using defaults")
        config = {}

    config.setdefault("base_url", BASE_URL)
    config.setdefault("excluded_name", PLAYER_NAME_TO_EXCLUDE)
    config.setdefault("target_locations", list(TARGET_SERVER_LOCATIONS))
    config.setdefault("selectors", {})
    config.setdefault("ready_signals", list(DEFAULT_READY_SIGNALS))
    config.setdefault("browser_engine", "chromium")
    config.setdefault("headless", True)
    config.setdefault("browser_args", list(DEFAULT_BROWSER_ARGS))
    config.setdefault("chrome_executable", "")
    return config


def _int_setting(config: dict, key: str, default: int, minimum: int) -> int:
    try:
        value = int(config.get(key, default))
    except (TypeError, ValueError):
        debug_print(f"⚠️  Invalid value for {key!r}, using {default}")
        value = default
    return max(minimum, value)


def _float_setting(config: dict, key: str, default: float) -> float:
    try:
        value = float(config.get(key, default))
    except (TypeError, ValueError):
        debug_print(f"⚠️  Invalid value for {key!r}, using {default}")
        value = default
    return max(0.0, value)


def _bool_setting(config: dict, key: str, default: bool) -> bool:
    value = config.get(key, default)
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    debug_print(f"⚠️  Invalid value for {key!r}, using {default}")
    return default


def _str_list(value: object, default: list[str]) -> tuple:
    if not isinstance(value, (list, tuple)):
        return tuple(default)
    items = [str(v).strip() for v in value if str(v or "").strip()]
    return tuple(items) if items else tuple(default)


def load_settings(config: Optional[dict] = None) -> ScraperSettings:
    """
    Build ScraperSettings from a config dict (defaults to config.json).

    Unknown selector keys are ignored; known ones override DEFAULT_SELECTORS.
    """
    cfg = get_config() if config is None else dict(config)

    selectors = dict(DEFAULT_SELECTORS)
    overrides = cfg.get("selectors")
    if isinstance(overrides, dict):
        for key, value in overrides.items():
            if key in DEFAULT_SELECTORS and str(value or "").strip():
                selectors[key] = str(value).strip()

    ready_signals = tuple(
        key for key in _str_list(cfg.get("ready_signals"), DEFAULT_READY_SIGNALS) if key in DEFAULT_SELECTORS
    ) or tuple(DEFAULT_READY_SIGNALS)

    engine = str(cfg.get("browser_engine") or "chromium").strip().lower()
    if engine not in ("chromium", "camoufox"):
        debug_print(f"⚠️  Unknown browser_engine {engine!r}, using chromium")
        engine = "chromium"

    return ScraperSettings(
        base_url=str(cfg.get("base_url") or BASE_URL).strip(),
        excluded_name=str(cfg.get("excluded_name") or PLAYER_NAME_TO_EXCLUDE),
        target_locations=_str_list(cfg.get("target_locations"), TARGET_SERVER_LOCATIONS),
        selectors=selectors,
        ready_signals=ready_signals,
        transient_navigation_markers=_str_list(
            cfg.get("transient_navigation_markers"), TRANSIENT_NAVIGATION_MARKERS
        ),
        navigation_attempts=_int_setting(cfg, "navigation_attempts", 4, 1),
        navigation_timeout_ms=_int_setting(cfg, "navigation_timeout_ms", 15000, 1000),
        navigation_settle_seconds=_float_setting(cfg, "navigation_settle_seconds", 0.5),
        navigation_backoff_seconds=_float_setting(cfg, "navigation_backoff_seconds", 0.4),
        home_screen_attempts=_int_setting(cfg, "home_screen_attempts", 5, 1),
        home_screen_probe_timeout_ms=_int_setting(cfg, "home_screen_probe_timeout_ms", 6000, 100),
        click_timeout_ms=_int_setting(cfg, "click_timeout_ms", 5000, 100),
        click_settle_seconds=_float_setting(cfg, "click_settle_seconds", 0.25),
        typing_delay_ms=_int_setting(cfg, "typing_delay_ms", 1, 0),
        typing_settle_seconds=_float_setting(cfg, "typing_settle_seconds", 0.1),
        picker_settle_seconds=_float_setting(cfg, "picker_settle_seconds", 0.3),
        game_start_settle_seconds=_float_setting(cfg, "game_start_settle_seconds", 1.2),
        leaderboard_timeout_ms=_int_setting(cfg, "leaderboard_timeout_ms", 3000, 100),
        browser_engine=engine,
        headless=_bool_setting(cfg, "headless", True),
        browser_args=_str_list(cfg.get("browser_args"), DEFAULT_BROWSER_ARGS),
        chrome_executable=str(cfg.get("chrome_executable") or "").strip(),
        ignore_https_errors=_bool_setting(cfg, "ignore_https_errors", True),
    )
