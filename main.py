import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from dal.translation_dal import TranslationDAL
from models.controller_config import ControllerConfig
from routes.realtime_ws import router as realtime_router
from routes.session_route import router as session_router
from services.openai.sentence_polisher import SentencePolisher
from services.openai.sign_classifier import SignClassifier
from services.realtime.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def _close_client(client) -> None:
    """Close the OpenAI client if it exposes a close/aclose method."""
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        logging.warning("Ignoring error while closing OpenAI client: %s", exc)


def _build_lifespan(session_store: Optional[SessionStore]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the SQLite transcript database (always new on startup, at DATABASE_DIR/app.db)
          - the OpenAI async client
          - the session store wiring both into every translation controller
        and attach them to `app.state`.
        """
        if session_store is not None:
            app.state.session_store = session_store
            app.state.openai_client = None
            try:
                yield
            finally:
                await session_store.close_all()
            return

        db_initializer = AsyncDatabaseInitializer()
        await db_initializer.ensure_database()
        app.state.db_initializer = db_initializer

        openai_api_key = os.getenv("OPENAI_API_KEY")
        if not openai_api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")

        try:
            openai_client = AsyncOpenAI()
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc

        app.state.openai_client = openai_client
        app.state.session_store = SessionStore(
            classifier_factory=lambda: SignClassifier(openai_client),
            polisher_factory=lambda: SentencePolisher(openai_client),
            config=ControllerConfig.from_env(),
            transcript=TranslationDAL(db_initializer),
        )

        try:
            yield
        finally:
            await app.state.session_store.close_all()
            await _close_client(openai_client)

    return lifespan


def create_app(session_store: Optional[SessionStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        session_store: Optional preconfigured store; when given, no OpenAI client
            or database is created at startup.
    """
    app = FastAPI(lifespan=_build_lifespan(session_store))

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting the session store, DB and OpenAI client.
        """
        store = getattr(request.app.state, "session_store", None)
        has_db = hasattr(request.app.state, "db_initializer")
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        return {
            "ok": store is not None,
            "sessions": len(store) if store is not None else 0,
            "db_initialized": has_db,
            "openai_available": has_openai,
        }

    app.include_router(session_router)
    app.include_router(realtime_router)

    return app


app = create_app()
