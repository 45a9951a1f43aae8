import asyncio
import os

import pytest

from stabfish_scores import session
from stabfish_scores.config import DEFAULT_SELECTORS
from stabfish_scores.leaderboard import extract_visible_entries


def _run_real_tests() -> bool:
    return os.environ.get("RUN_REAL_TESTS", "").strip().lower() in {"1", "true", "yes", "on"}


PICKER_HTML = """
<div class="server-data" onclick="window.__picked = 'dallas-4'"><span class="name"> Dallas #4 (us-02) </span></div>
<div class="server-data" onclick="window.__picked = 'dallas-1'"><span class="name">Dallas #1 (us-11ee)</span></div>
<div class="server-data"><span class="other">no name node</span></div>
"""

RANKS_HTML = """
<div class="utility-ranks"><div class="list">
  <div class="rank-item text-yellow"><span class="name">Top players</span><span class="score">1,000,000</span></div>
  <div class="rank-item"><span class="name"> A </span><span class="score"> 1,000 </span></div>
  <div class="rank-item"><span class="name">Lost</span><span class="score">50</span></div>
  <div class="rank-item"><span class="name">NoScore</span></div>
  <div class="rank-item"><span class="score">7</span></div>
  <div class="rank-item"><span class="name">C</span><span class="score">300</span></div>
</div></div>
"""


async def _with_page(html: str, fn):  # noqa: ANN001
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page()
            await page.set_content(html)
            return await fn(page)
        finally:
            await browser.close()


@pytest.mark.skipif(not _run_real_tests(), reason="Set RUN_REAL_TESTS=1 to run real browser tests")
def test_extract_script_skips_highlight_excluded_and_partial_rows():
    async def run(page):  # noqa: ANN001
        return await extract_visible_entries(page, "Lost", DEFAULT_SELECTORS)

    entries = asyncio.run(_with_page(RANKS_HTML, run))
    assert entries == [("A", "1,000"), ("C", "300")]


@pytest.mark.skipif(not _run_real_tests(), reason="Set RUN_REAL_TESTS=1 to run real browser tests")
def test_server_scripts_list_trimmed_names_and_click_exact_row():
    async def run(page):  # noqa: ANN001
        names = await page.evaluate(session._SERVER_NAMES_SCRIPT, DEFAULT_SELECTORS["server_name"])
        resolved = session.resolve_server_name(names, "Dallas")
        clicked = await page.evaluate(
            session._CLICK_SERVER_ROW_SCRIPT,
            {
                "rowSelector": DEFAULT_SELECTORS["server_row"],
                "nameSelector": DEFAULT_SELECTORS["server_name"],
                "serverName": "Dallas #1 (us-11ee)",
            },
        )
        missing = await page.evaluate(
            session._CLICK_SERVER_ROW_SCRIPT,
            {
                "rowSelector": DEFAULT_SELECTORS["server_row"],
                "nameSelector": DEFAULT_SELECTORS["server_name"],
                "serverName": "Dallas",
            },
        )
        picked = await page.evaluate("() => window.__picked")
        return names, resolved, clicked, missing, picked

    names, resolved, clicked, missing, picked = asyncio.run(_with_page(PICKER_HTML, run))
    assert names == ["Dallas #4 (us-02)", "Dallas #1 (us-11ee)"]
    assert resolved == "Dallas #4 (us-02)"
    assert clicked is True
    assert missing is False
    assert picked == "dallas-1"
