import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI

from config import Settings
from db import Database
from errors import install_error_handlers
from lifecycle import FoodLifecycle
from routers import auth, chat, food, rating, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.db

    database.create_db_and_tables()
    if settings.SWEEP_EXPIRED_ON_STARTUP:
        with database.session() as session:
            FoodLifecycle(session, timedelta(hours=settings.FOOD_TTL_HOURS)).sweep_expired()
    logger.info(f"{settings.APP_NAME} started")

    yield

    database.dispose()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)

    install_error_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": f"{settings.APP_NAME} API is running"}

    app.include_router(auth.router)
    app.include_router(users.router, prefix="/users")
    app.include_router(food.router, prefix="/food")
    app.include_router(rating.router, prefix="/rating")
    app.include_router(chat.router, prefix="/chat")
    return app


app = create_app()
