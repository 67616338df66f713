# orderahead/main.py
from fastapi import FastAPI
import uvicorn

from orderahead.api import include_routers
from orderahead.data.database import Base, engine
from orderahead.utils.logging import get_logger

# all models have to be imported before create_all
from orderahead.data import models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="OrderAhead",
        version="1.0.0",
    )
    include_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
