import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from weekplan.config import HOST, PORT, LOG_LEVEL
from weekplan.database import init_db
from weekplan.routes.task_routes import router as task_router
from weekplan.routes.schedule_routes import router as schedule_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        init_db()
    except Exception as e:
        # Hosted databases may refuse CREATE; the schema is then managed there
        logger.error(f"Database init skipped or failed: {e}")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Weekplan Scheduler", lifespan=lifespan)

    @app.get("/api/v1/health-check")
    async def health():
        return {"status": "ok", "message": "Backend is alive!"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(task_router)
    app.include_router(schedule_router)
    return app


app = create_app()


def main():
    import uvicorn
    uvicorn.run("weekplan.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
