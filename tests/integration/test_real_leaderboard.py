import asyncio
import os

import pytest


def _run_real_tests() -> bool:
    return os.environ.get("RUN_REAL_TESTS", "").strip().lower() in {"1", "true", "yes", "on"}


@pytest.mark.skipif(not _run_real_tests(), reason="Set RUN_REAL_TESTS=1 to run real browser tests")
def test_collect_leaderboard_real():
    from stabfish_scores.config import load_settings
    from stabfish_scores.scores import collect_leaderboard

    settings = load_settings({"target_locations": ["Silicon Valley"]})
    text = asyncio.run(asyncio.wait_for(collect_leaderboard(settings), timeout=180))

    assert isinstance(text, str)
    assert text
    assert not text.startswith("Error: "), text
    assert "Lost, " not in text
