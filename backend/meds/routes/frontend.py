"""
MEDS Backend — Frontend Static Files
======================================

What:  Serves the pre-built single-page frontend from the API process.
How:   Starlette `StaticFiles` mounted at "/" after every API router.
       Paths that match no file fall back to `index.html` so client-side
       routes (/patients/abc123, /encounter/xyz) survive a page reload.

Directory resolution (first hit wins):
    1. settings.frontend_dir, when set
    2. frontend/build, ../frontend/build, ./build, ../build
       (relative to the working directory)

When nothing is found the API still starts; only the UI is missing.
"""

import logging
from pathlib import Path
from typing import Optional

from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.staticfiles import StaticFiles

from meds.config import settings

logger = logging.getLogger(__name__)

CANDIDATE_DIRS = ("frontend/build", "../frontend/build", "./build", "../build")

# API prefixes never fall back to index.html
API_PREFIXES = ("api/", "health", "docs", "redoc", "openapi.json")


def resolve_frontend_dir(explicit: Optional[str] = None) -> Optional[Path]:
    """Return the first existing frontend build directory, or None."""
    explicit = explicit if explicit is not None else settings.frontend_dir
    candidates = [explicit] if explicit else list(CANDIDATE_DIRS)
    for candidate in candidates:
        path = Path(candidate)
        if path.is_dir():
            return path.resolve()
    logger.warning(
        "No frontend build found (looked in: %s); serving the API only",
        ", ".join(candidates),
    )
    return None


class SPAStaticFiles(StaticFiles):
    """StaticFiles that answers unknown non-API paths with index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404 or path.startswith(API_PREFIXES):
                raise
            return await super().get_response("index.html", scope)
