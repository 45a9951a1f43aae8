from typing import Optional

from .browser_automation import (
    HomeScreenNotReadyError,
    debug_print,
    launch_browser,
    safe_goto,
    type_player_name,
    wait_for_home_screen,
)
from .config import ScraperSettings, load_settings
from .leaderboard import format_leaderboard
from .session import ServerVisit


async def collect_leaderboard(settings: Optional[ScraperSettings] = None) -> str:
    """
    Visit every target location, merge best scores per player and return them as text.

    Never raises: any failure is returned as "Error: <message>". A failure to
    get back to the home screen after a server visit stops the loop but keeps
    the scores collected so far; a failure on the very first load is fatal.
    """
    try:
        if settings is None:
            settings = load_settings()

        merged: dict[str, int] = {}
        async with launch_browser(settings) as page:
            await safe_goto(page, settings.base_url, settings)
            await wait_for_home_screen(page, settings)

            debug_print("⌨️  Typing player name...")
            await type_player_name(page, settings.excluded_name, settings)

            for location in settings.target_locations:
                debug_print(f"\n=== SERVER: {location} ===")
                visit = ServerVisit(page, location, settings, merged)
                try:
                    result = await visit.run()
                except HomeScreenNotReadyError as e:
                    debug_print(f"❌ Lost the home screen after {location}: {e}")
                    debug_print(f"⏹️  Stopping early with {len(merged)} players collected")
                    break
                if result.skipped_steps:
                    debug_print(f"  ↪️ Skipped steps for {location}: {', '.join(result.skipped_steps)}")

        debug_print(f"🏁 Collected {len(merged)} players")
        return format_leaderboard(merged)

    except Exception as e:
        debug_print(f"❌ Scrape FAILED: {type(e).__name__}: {e}")
        return f"Error: {e}"
