import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .browser_automation import (
    HomeScreenNotReadyError,
    debug_print,
    find_name_input,
    safe_click,
    safe_goto,
    type_player_name,
    wait_for_home_screen,
)
from .config import ScraperSettings
from .leaderboard import extract_visible_entries, merge_entries

_SERVER_NAMES_SCRIPT = """(nameSelector) =>
  [...document.querySelectorAll(nameSelector)].map((n) => (n.textContent || '').trim())"""

_CLICK_SERVER_ROW_SCRIPT = """({rowSelector, nameSelector, serverName}) => {
  const rows = [...document.querySelectorAll(rowSelector)];
  const target = rows.find((r) => r.querySelector(nameSelector)?.textContent?.trim() === serverName);
  if (!target) return false;
  target.click();
  return true;
}"""


class SessionState(str, Enum):
    HOME = "home"
    PICKER_OPEN = "picker_open"
    PICKER_RESOLVED = "picker_resolved"
    IN_GAME = "in_game"
    LEADERBOARD_OPEN = "leaderboard_open"
    RETURNING_HOME = "returning_home"


@dataclass
class ServerVisitResult:
    location: str
    server_name: Optional[str] = None
    entries: list = field(default_factory=list)
    leaderboard_rendered: bool = False
    skipped_steps: list = field(default_factory=list)
    server_not_found: bool = False
    final_state: SessionState = SessionState.HOME


def resolve_server_name(names, location: str) -> Optional[str]:
    """First rendered server name that starts with the location prefix."""
    for name in names or []:
        text = str(name or "").strip()
        if text.startswith(location):
            return text
    return None


class ServerVisit:
    """
    One pass over a single target location, driven as an explicit state machine.

    Every transition returns the next state, and every failure path ends in
    RETURNING_HOME, so the page is back at the home screen when `run`
    returns. Entries are merged into `merged` as soon as they are read, so a
    later failure to get home cannot lose them.
    """

    def __init__(self, page, location: str, settings: ScraperSettings, merged: dict[str, int]) -> None:  # noqa: ANN001
        self.page = page
        self.location = location
        self.settings = settings
        self.merged = merged
        self.state = SessionState.HOME
        self.result = ServerVisitResult(location=location)
        self._transitions = {
            SessionState.HOME: self._open_picker,
            SessionState.PICKER_OPEN: self._select_server,
            SessionState.PICKER_RESOLVED: self._start_game,
            SessionState.IN_GAME: self._open_leaderboard,
            SessionState.LEADERBOARD_OPEN: self._collect_entries,
            SessionState.RETURNING_HOME: self._return_home,
        }

    async def run(self) -> ServerVisitResult:
        done = False
        while not done:
            done = self.state is SessionState.RETURNING_HOME
            self.state = await self._transitions[self.state]()
        self.result.final_state = self.state
        return self.result

    async def _click(self, selector_key: str, step: str) -> bool:
        clicked = await safe_click(self.page, self.settings.selector(selector_key), self.settings)
        if not clicked:
            self.result.skipped_steps.append(step)
        return clicked

    async def _open_picker(self) -> SessionState:
        if not await self._click("server_picker", "open server picker"):
            return SessionState.RETURNING_HOME
        await asyncio.sleep(self.settings.picker_settle_seconds)
        return SessionState.PICKER_OPEN

    async def _select_server(self) -> SessionState:
        names = await self.page.evaluate(_SERVER_NAMES_SCRIPT, self.settings.selector("server_name"))
        server_name = resolve_server_name(names, self.location)
        if not server_name:
            debug_print(f"❓ Server not found: {self.location}")
            self.result.server_not_found = True
            await self._click("modal_close", "close server picker")
            return SessionState.RETURNING_HOME

        debug_print(f"✅ Found server: {server_name}")
        self.result.server_name = server_name

        # Look the row up again by exact name; the list can re-render between reads.
        clicked = await self.page.evaluate(
            _CLICK_SERVER_ROW_SCRIPT,
            {
                "rowSelector": self.settings.selector("server_row"),
                "nameSelector": self.settings.selector("server_name"),
                "serverName": server_name,
            },
        )
        if not clicked:
            debug_print(f"⚠️ Server row vanished before click: {server_name}")
            self.result.skipped_steps.append("select server")
            await self._click("modal_close", "close server picker")
            return SessionState.RETURNING_HOME

        await asyncio.sleep(self.settings.picker_settle_seconds)
        return SessionState.PICKER_RESOLVED

    async def _start_game(self) -> SessionState:
        await self._click("modal_close", "close server picker")
        await self._click("play_button", "play")
        await self._click("start_game_button", "start game")
        await self._click("start_now_button", "start now")
        # Round assets spawn after the last click.
        await asyncio.sleep(self.settings.game_start_settle_seconds)
        return SessionState.IN_GAME

    async def _open_leaderboard(self) -> SessionState:
        await self._click("leaderboard_trigger", "open leaderboard")
        try:
            await self.page.wait_for_selector(
                self.settings.selector("leaderboard_list"),
                timeout=self.settings.leaderboard_timeout_ms,
            )
        except Exception as e:
            debug_print(f"❌ Leaderboard failed for {self.location}: {e}")
            return SessionState.RETURNING_HOME
        self.result.leaderboard_rendered = True
        return SessionState.LEADERBOARD_OPEN

    async def _collect_entries(self) -> SessionState:
        try:
            entries = await extract_visible_entries(self.page, self.settings.excluded_name, self.settings.selectors)
        except Exception as e:
            debug_print(f"❌ Leaderboard extraction failed for {self.location}: {e}")
            return SessionState.RETURNING_HOME
        self.result.entries = entries
        merge_entries(entries, self.merged, excluded_name=self.settings.excluded_name)
        debug_print(f"📊 {len(entries)} entries from {self.result.server_name}")
        return SessionState.RETURNING_HOME

    async def _return_home(self) -> SessionState:
        """
        Reload the base URL and re-enter the excluded name.

        Any failure here is raised as HomeScreenNotReadyError so the caller
        can stop iterating and keep what it already merged.
        """
        try:
            await safe_goto(self.page, self.settings.base_url, self.settings)
            await wait_for_home_screen(self.page, self.settings)

            if await find_name_input(self.page, self.settings):
                await type_player_name(self.page, self.settings.excluded_name, self.settings)
            else:
                debug_print("⚠️ Name input vanished after returning home; will try recovery on next loop.")
        except HomeScreenNotReadyError:
            raise
        except Exception as e:
            raise HomeScreenNotReadyError(f"Could not return to the home screen: {e}") from e
        return SessionState.HOME
