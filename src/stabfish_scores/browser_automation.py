import asyncio
import os
import sys
import builtins as _builtins
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator, Iterable, Optional

from camoufox.async_api import AsyncCamoufox
from playwright.async_api import async_playwright

if TYPE_CHECKING:
    from .config import ScraperSettings

# ============================================================
# LOGGING HELPER
# ============================================================
DEBUG = True

def _safe_print(*args, **kwargs) -> None:
    """
    Print without crashing on Windows console encoding issues.
    """
    try:
        _builtins.print(*args, **kwargs)
    except UnicodeEncodeError:
        file = kwargs.get("file") or sys.stdout
        sep = kwargs.get("sep", " ")
        end = kwargs.get("end", "\n")
        flush = bool(kwargs.get("flush", False))

        try:
            text = sep.join(str(a) for a in args) + end
            encoding = getattr(file, "encoding", None) or getattr(sys.stdout, "encoding", None) or "utf-8"
            safe_text = text.encode(encoding, errors="backslashreplace").decode(encoding, errors="ignore")
            file.write(safe_text)
            if flush:
                try:
                    file.flush()
                except Exception:
                    pass
        except Exception:
            return

def debug_print(*args, **kwargs):
    if DEBUG:
        _safe_print(*args, **kwargs)

# ============================================================
# ERRORS
# ============================================================

class HomeScreenNotReadyError(RuntimeError):
    """Raised when the app never reaches its ready state, even after reloads."""


class NameInputNotFoundError(RuntimeError):
    """Raised when no candidate name input can be located on the page."""

# ============================================================
# BROWSER
# ============================================================

def find_chrome_executable(configured: str = "") -> Optional[str]:
    for candidate in (configured, os.environ.get("CHROME_PATH")):
        value = str(candidate or "").strip()
        if value and Path(value).exists():
            return value
    # Fall back to Playwright's bundled Chromium.
    return None

@asynccontextmanager
async def launch_browser(settings: "ScraperSettings") -> AsyncIterator:
    """
    Open a single page and guarantee the browser is closed on every exit path.

    Yields the Playwright page. "camoufox" runs the Firefox-based Camoufox
    build, anything else runs Chromium through Playwright. browser_args and
    chrome_executable only apply to Chromium; Camoufox picks its own binary
    and launch flags.
    """
    if settings.browser_engine == "camoufox":
        async with AsyncCamoufox(headless=settings.headless) as browser:
            debug_print("🦊 Camoufox browser launched")
            page = await browser.new_page(ignore_https_errors=settings.ignore_https_errors)
            yield page
        debug_print("🧹 Camoufox browser closed")
        return

    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=settings.headless,
            args=list(settings.browser_args),
            executable_path=find_chrome_executable(settings.chrome_executable),
        )
        debug_print("🌐 Chromium browser launched")
        try:
            context = await browser.new_context(ignore_https_errors=settings.ignore_https_errors)
            page = await context.new_page()
            yield page
        finally:
            await browser.close()
            debug_print("🧹 Chromium browser closed")

# ============================================================
# NAVIGATION
# ============================================================

def is_transient_navigation_error(exc: BaseException, markers: Iterable[str]) -> bool:
    message = str(exc).casefold()
    return any(str(marker).casefold() in message for marker in markers if marker)

async def safe_goto(page, url: str, settings: "ScraperSettings") -> None:  # noqa: ANN001
    attempts = max(1, int(settings.navigation_attempts))
    for attempt in range(1, attempts + 1):
        try:
            debug_print(f"🔗 safe_goto attempt {attempt} → {url}")
            await page.goto(url, wait_until="domcontentloaded", timeout=settings.navigation_timeout_ms)
            # The app re-renders once right after load.
            await asyncio.sleep(settings.navigation_settle_seconds)
            return
        except Exception as e:
            debug_print(f"⚠️ safe_goto attempt {attempt} failed: {e}")
            if attempt >= attempts:
                raise
            if is_transient_navigation_error(e, settings.transient_navigation_markers):
                await asyncio.sleep(settings.navigation_backoff_seconds)

# ============================================================
# ELEMENT LOOKUP
# ============================================================

@dataclass(frozen=True)
class SelectorMatcher:
    label: str
    selector_key: str

    async def locate(self, page, settings: "ScraperSettings"):  # noqa: ANN001
        return await page.query_selector(settings.selector(self.selector_key))


# Priority order: the stable id first, then the class, then the framework-generated id.
NAME_INPUT_MATCHERS = (
    SelectorMatcher("fixed id", "name_input_id"),
    SelectorMatcher("class", "name_input_class"),
    SelectorMatcher("generated id", "name_input_generated"),
)

async def find_first_match(page, matchers: Iterable[SelectorMatcher], settings: "ScraperSettings"):  # noqa: ANN001
    for matcher in matchers:
        try:
            handle = await matcher.locate(page, settings)
        except Exception as e:
            debug_print(f"  ⚠️ Lookup by {matcher.label} failed: {e}")
            continue
        if handle:
            return handle
    return None

async def find_name_input(page, settings: "ScraperSettings"):  # noqa: ANN001
    return await find_first_match(page, NAME_INPUT_MATCHERS, settings)

def _ready_matchers(settings: "ScraperSettings") -> list[SelectorMatcher]:
    return [SelectorMatcher(key, key) for key in settings.ready_signals]

async def wait_for_home_screen(page, settings: "ScraperSettings") -> None:  # noqa: ANN001
    """
    Block until any ready signal is on the page, reloading the base URL between checks.

    Raises HomeScreenNotReadyError after `home_screen_attempts` failed checks.
    """
    combined = ", ".join(settings.ready_selectors())
    attempts = max(1, int(settings.home_screen_attempts))
    for attempt in range(1, attempts + 1):
        try:
            debug_print(f"🏠 waitForHomeScreen attempt {attempt}")
            await page.wait_for_selector(combined, timeout=settings.home_screen_probe_timeout_ms)
            if await find_first_match(page, _ready_matchers(settings), settings):
                return
        except Exception as e:
            debug_print(f"  ⚠️ Home screen check failed: {e}")

        debug_print(f"🔄 Home screen not ready, reloading ({attempt})")
        await safe_goto(page, settings.base_url, settings)
        await asyncio.sleep(settings.navigation_settle_seconds)

    raise HomeScreenNotReadyError("Home screen never loaded (name input missing)")

# ============================================================
# INTERACTION
# ============================================================

async def safe_click(page, selector: str, settings: "ScraperSettings") -> bool:  # noqa: ANN001
    try:
        await page.wait_for_selector(selector, timeout=settings.click_timeout_ms)
        await page.click(selector)
        await asyncio.sleep(settings.click_settle_seconds)
        return True
    except Exception as e:
        debug_print(f"⚠️ safe_click failed ({selector}): {e}")
        return False

async def clear_input(page, handle) -> None:  # noqa: ANN001
    await page.evaluate("el => { el.value = ''; }", handle)

async def type_player_name(page, name: str, settings: "ScraperSettings") -> None:  # noqa: ANN001
    """
    Type `name` into the active name input one key at a time.

    The input validates keystrokes, so a bulk value assignment is not enough.
    Falls back to a single `page.type` against every known selector if the
    handle path fails.
    """
    handle = await find_name_input(page, settings)
    if not handle:
        raise NameInputNotFoundError("No name input handle to type into")

    try:
        await clear_input(page, handle)
        await handle.focus()
        await page.keyboard.type(name, delay=settings.typing_delay_ms)
        await asyncio.sleep(settings.typing_settle_seconds)
    except Exception as e:
        debug_print(f"⚠️ type_player_name: falling back to page.type, error: {e}")
        await page.type(", ".join(settings.name_input_selectors()), name)
