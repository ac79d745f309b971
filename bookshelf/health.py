"""Status and health-check endpoints for the worker process."""
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from bookshelf.models import WorkerState

IMAGES_PATH = "/images"


def create_app(state: WorkerState, image_dir: Optional[str] = None) -> FastAPI:
    """
    Build the worker's HTTP app reporting on ``state``.

    When ``image_dir`` is given, stored cover images are served from it
    under ``/images``, matching the default public image URL.
    """
    app = FastAPI(title="Bookshelf worker", docs_url=None, redoc_url=None)

    @app.get("/", response_class=PlainTextResponse)
    async def status():
        return f"This worker has processed {state.books_processed} books."

    @app.get("/_ah/health", response_class=PlainTextResponse)
    async def health():
        return "ok"

    if image_dir is not None:
        Path(image_dir).mkdir(parents=True, exist_ok=True)
        app.mount(IMAGES_PATH, StaticFiles(directory=image_dir), name="images")

    return app
