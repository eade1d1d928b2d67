import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assignment_hub.api.v1.classes.router import router as classes_router
from assignment_hub.api.v1.notifications.router import router as notifications_router
from assignment_hub.api.v1.subjects.router import router as subjects_router
from assignment_hub.api.v1.tasks.router import router as tasks_router
from assignment_hub.api.v1.teachers.router import router as teachers_router
from assignment_hub.api.v1.teaching_assignments.router import router as teaching_assignments_router
from assignment_hub.core.config import settings
from assignment_hub.db.session import init_models


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Assignment Hub", lifespan=lifespan)

    # CORS: allow the matrix UI to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(classes_router)
    app.include_router(subjects_router)
    app.include_router(teachers_router)
    app.include_router(teaching_assignments_router)
    app.include_router(tasks_router)
    app.include_router(notifications_router)

    return app


app = create_app()
