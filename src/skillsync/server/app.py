"""HTTP feed server publishing a directory of skills.

Routes:
  - GET /, /feed.json   feed document (JSON)
  - GET /skills/<path>  skill body without frontmatter (Markdown)
  - GET /health         liveness probe

Feed and skill responses carry an ETag and answer matching If-None-Match
requests with 304. Run with:
  - skillsync-server
  - or: python -m skillsync.server.app (ensure PYTHONPATH includes ./src)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from skillsync.config import ServerConfig, load_settings
from skillsync.exceptions import ConfigError
from skillsync.server.feed import FeedMetadata, generate_feed, get_skill_content
from skillsync.server.responder import conditional_response

logger = logging.getLogger(__name__)

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, If-None-Match",
}

SKILLS_PREFIX = "/skills/"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_skills_app(config: ServerConfig) -> Starlette:
    """Create the Starlette app serving `config.skills_dir`.

    Raises `ConfigError` if the skills directory does not exist.
    """
    skills_dir = Path(config.skills_dir).expanduser().resolve()
    if not skills_dir.is_dir():
        raise ConfigError(f"Skills directory not found: {skills_dir}")
    metadata = FeedMetadata(
        name=config.feed_name,
        author=config.author,
        homepage=config.homepage,
        description=config.description,
    )

    async def handle_feed(request: Request) -> Response:
        feed = await run_in_threadpool(generate_feed, skills_dir, metadata)
        body = json.dumps(feed.to_dict(), indent=2)
        return conditional_response(request, body, "application/json", etag_enabled=config.etag)

    async def handle_skill(request: Request, skill_path: str) -> Response:
        content = await run_in_threadpool(get_skill_content, skills_dir, skill_path)
        if content is None:
            return _error(404, "Not found")
        return conditional_response(request, content, "text/markdown", etag_enabled=config.etag)

    async def route(request: Request) -> Response:
        # Preflight is answered before any routing
        if request.method == "OPTIONS":
            return Response(status_code=204)
        if request.method != "GET":
            return _error(405, "Method not allowed")

        path = request.url.path
        try:
            if path in ("/", "/feed.json"):
                return await handle_feed(request)
            if path.startswith(SKILLS_PREFIX):
                return await handle_skill(request, path[len(SKILLS_PREFIX) :])
            if path == "/health":
                return JSONResponse({"status": "ok"})
            return _error(404, "Not found")
        except Exception:
            logger.exception("Server error while handling %s %s", request.method, path)
            return _error(500, "Internal server error")

    async def endpoint(request: Request) -> Response:
        response = await route(request)
        if config.cors:
            response.headers.update(CORS_HEADERS)
        return response

    # Accept every method here so 404/405/204 are decided by `route`
    return Starlette(routes=[Route("/{path:path}", endpoint, methods=ALL_METHODS)])


def main() -> None:
    """Load settings and serve the configured skills directory."""
    settings = load_settings()
    logging.basicConfig(
        level=settings.app.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = settings.server
    try:
        app = create_skills_app(cfg)
    except ConfigError as e:
        logger.error("%s. Create it and add some .md files, or set SKILLSYNC_SERVER__SKILLS_DIR.", e)
        raise SystemExit(1) from e

    logger.info("Skills server running at http://%s:%d", cfg.host, cfg.port)
    logger.info("  Feed:   http://%s:%d/feed.json", cfg.host, cfg.port)
    logger.info("  Skills: http://%s:%d/skills/", cfg.host, cfg.port)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=settings.app.log_level.lower())


if __name__ == "__main__":  # pragma: no cover
    main()
