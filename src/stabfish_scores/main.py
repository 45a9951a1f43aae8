import os
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from starlette.responses import PlainTextResponse

from .browser_automation import debug_print
from .config import get_config, load_settings
from .scores import collect_leaderboard

# ============================================================
# CONFIGURATION
# ============================================================
DEFAULT_PORT = 3000

app = FastAPI()


async def _scores_response(route: str) -> PlainTextResponse:
    debug_print(f"📥 {route} triggered")
    try:
        scores = await collect_leaderboard()
        return PlainTextResponse(scores, status_code=200)
    except Exception as e:
        debug_print(f"❌ Handler Error: {e}")
        return PlainTextResponse(f"Failed: {e}", status_code=500)


@app.get("/api/scores", response_class=PlainTextResponse)
async def get_scores():
    return await _scores_response("/api/scores")


@app.get("/api/apiscores", response_class=PlainTextResponse)
async def get_apiscores():
    return await _scores_response("/api/apiscores")


@app.get("/api/v1/health")
async def health_check():
    """Health check endpoint for monitoring"""
    try:
        settings = load_settings(get_config())
        return {
            "status": "healthy" if settings.target_locations else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "base_url": settings.base_url,
                "target_locations": list(settings.target_locations),
                "browser_engine": settings.browser_engine,
            },
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": str(e),
        }


def get_port() -> int:
    raw = os.environ.get("PORT") or ""
    if not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        debug_print(f"⚠️  Invalid PORT {raw!r}, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    if not 0 < port < 65536:
        debug_print(f"⚠️  PORT {port} out of range, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


def run() -> None:
    port = get_port()
    print("=" * 60)
    print("🚀 Stabfish Leaderboard Server Starting...")
    print("=" * 60)
    print(f"📍 Scores: http://localhost:{port}/api/scores")
    print(f"🩺 Health: http://localhost:{port}/api/v1/health")
    print("=" * 60)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
