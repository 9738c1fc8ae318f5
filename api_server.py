from __future__ import annotations  # FastAPI server for the mock interview service

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import install_routes
from config import AppConfig, bound_keys, load_config, settings
from services.collaborators import bind_defaults
from storage.migrate import migrate


logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent


def _load_app_config() -> Optional[AppConfig]:  # Read LLM routes, tolerating a missing file in TEST_MODE
    path = Path(settings.APP_CONFIG_PATH)
    if not path.is_absolute():
        path = ROOT / path
    if not path.exists():
        if settings.TEST_MODE:
            return None
        raise FileNotFoundError(f"App config not found: {path}")
    return load_config(path)


def create_app() -> FastAPI:  # Build the ASGI app with routes, migrations and default bindings
    migrate(settings.DB_PATH)
    bind_defaults(_load_app_config())

    app = FastAPI(title="Mock Interview API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_routes(app)

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok", "bindings": bound_keys()}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
