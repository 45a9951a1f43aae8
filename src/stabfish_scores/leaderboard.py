import re
from typing import Iterable, Optional

from .browser_automation import debug_print

NO_SCORES_TEXT = "No scores found."

_SCORE_RE = re.compile(r"^\d+$")

# Runs in the page; returns [{name, score, classes}] for every visible player row.
_EXTRACT_ENTRIES_SCRIPT = """({rowSelector, nameSelector, scoreSelector, highlightClass, excludeName}) => {
  const out = [];
  document.querySelectorAll(rowSelector).forEach((row) => {
    if (highlightClass && row.classList.contains(highlightClass)) return;
    const name = row.querySelector(nameSelector)?.textContent?.trim();
    const score = row.querySelector(scoreSelector)?.textContent?.trim();
    if (name && score && name !== excludeName) out.push({ name, score, classes: [...row.classList] });
  });
  return out;
}"""


def parse_score(text: object) -> Optional[int]:
    """Parse a leaderboard score like "12,345"; returns None for anything else."""
    cleaned = str(text or "").replace(",", "").strip()
    if not _SCORE_RE.match(cleaned):
        return None
    return int(cleaned, 10)


def format_score(score: int) -> str:
    return f"{int(score):,}"


async def extract_visible_entries(page, excluded_name: str, selectors: dict) -> list[tuple[str, str]]:  # noqa: ANN001
    rows = await page.evaluate(
        _EXTRACT_ENTRIES_SCRIPT,
        {
            "rowSelector": selectors["rank_row"],
            "nameSelector": selectors["rank_name"],
            "scoreSelector": selectors["rank_score"],
            "highlightClass": selectors["highlight_class"],
            "excludeName": excluded_name,
        },
    )
    highlight_class = selectors["highlight_class"]
    entries: list[tuple[str, str]] = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        name = str(row.get("name") or "").strip()
        score = str(row.get("score") or "").strip()
        if not name or not score or name == excluded_name:
            continue
        classes = row.get("classes")
        if isinstance(classes, list) and highlight_class in classes:
            continue
        entries.append((name, score))
    return entries


def merge_entries(
    entries: Iterable[tuple[str, object]],
    into: dict[str, int],
    *,
    excluded_name: Optional[str] = None,
) -> dict[str, int]:
    """
    Fold (name, score) pairs into `into`, keeping each player's best score.

    Scores may be raw text or ints. Rows whose score does not parse are
    dropped; a player's recorded score is never lowered.
    """
    for name, raw_score in entries:
        if excluded_name is not None and name == excluded_name:
            continue
        score = raw_score if isinstance(raw_score, int) and raw_score >= 0 else parse_score(raw_score)
        if score is None:
            debug_print(f"  ⚠️ Dropping row with unparseable score: {name!r} → {raw_score!r}")
            continue
        into[name] = max(into.get(name, 0), score)
    return into


def format_leaderboard(merged: dict[str, int]) -> str:
    if not merged:
        return NO_SCORES_TEXT
    ranked = sorted(merged.items(), key=lambda item: item[1], reverse=True)
    return "\n".join(f"{name}, {format_score(score)}" for name, score in ranked)
