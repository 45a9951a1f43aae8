import json

from stabfish_scores import config
from stabfish_scores.config import DEFAULT_SELECTORS, get_config, load_settings


def test_get_config_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_FILE", str(tmp_path / "missing.json"))

    cfg = get_config()

    assert cfg["base_url"] == "https://stabfish2.io"
    assert cfg["excluded_name"] == "Lost"
    assert cfg["target_locations"] == ["Silicon Valley", "Dallas", "Toronto"]
    assert cfg["selectors"] == {}


def test_get_config_corrupt_file_uses_defaults(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr(config, "CONFIG_FILE", str(path))

    assert get_config()["browser_engine"] == "chromium"


def test_get_config_keeps_file_values(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"target_locations": ["Frankfurt"], "headless": False}), encoding="utf-8")
    monkeypatch.setattr(config, "CONFIG_FILE", str(path))

    cfg = get_config()

    assert cfg["target_locations"] == ["Frankfurt"]
    assert cfg["headless"] is False
    assert cfg["excluded_name"] == "Lost"


def test_load_settings_defaults_match_site_contract():
    settings = load_settings({})

    assert settings.target_locations == ("Silicon Valley", "Dallas", "Toronto")
    assert settings.navigation_attempts == 4
    assert settings.navigation_timeout_ms == 15000
    assert settings.home_screen_attempts == 5
    assert settings.click_timeout_ms == 5000
    assert settings.leaderboard_timeout_ms == 3000
    assert settings.selector("rank_row") == ".rank-item"
    assert settings.name_input_selectors() == ["#playername", "input.name-input", 'input[id^="__BVID__"]']
    assert ".btn-primary.btn-lg.w-100" in settings.ready_selectors()


def test_load_settings_overrides_and_sanitizes():
    settings = load_settings(
        {
            "base_url": " https://staging.stabfish2.io ",
            "target_locations": ["Dallas", "", "  "],
            "selectors": {"rank_row": ".rank-row", "unknown": ".x", "rank_score": ""},
            "ready_signals": ["play_button", "bogus"],
            "navigation_attempts": "abc",
            "home_screen_attempts": 0,
            "click_settle_seconds": "-1",
            "browser_engine": "netscape",
        }
    )

    assert settings.base_url == "https://staging.stabfish2.io"
    assert settings.target_locations == ("Dallas",)
    assert settings.selector("rank_row") == ".rank-row"
    assert settings.selector("rank_score") == DEFAULT_SELECTORS["rank_score"]
    assert "unknown" not in settings.selectors
    assert settings.ready_selectors() == [DEFAULT_SELECTORS["play_button"]]
    assert settings.navigation_attempts == 4
    assert settings.home_screen_attempts == 1
    assert settings.click_settle_seconds == 0.0
    assert settings.browser_engine == "chromium"


def test_load_settings_reads_config_file_when_not_given(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"excluded_name": "Bot"}), encoding="utf-8")
    monkeypatch.setattr(config, "CONFIG_FILE", str(path))

    assert load_settings().excluded_name == "Bot"


def test_load_settings_parses_boolean_strings():
    settings = load_settings({"headless": "false", "ignore_https_errors": "0"})
    assert settings.headless is False
    assert settings.ignore_https_errors is False

    settings = load_settings({"headless": "Yes", "ignore_https_errors": "on"})
    assert settings.headless is True
    assert settings.ignore_https_errors is True


def test_load_settings_unknown_boolean_falls_back_to_default():
    settings = load_settings({"headless": "maybe", "ignore_https_errors": None})
    assert settings.headless is True
    assert settings.ignore_https_errors is True
