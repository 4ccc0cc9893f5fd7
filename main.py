import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from config import Settings, setup_logging
from database import Store, now
from dependencies import get_settings, get_store
from errors import register_exception_handlers
from gateway import StripeGateway
from routers import applications, blogs, claims, payments, policies, reviews, users
from uploads import URL_PREFIX

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
    gateway: Optional[StripeGateway] = None,
) -> FastAPI:
    settings = settings or Settings()
    store = store or Store.from_url(settings.DATABASE_URL, settings.DATABASE_NAME)
    gateway = gateway or StripeGateway(settings.STRIPE_SECRET_KEY)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure_indexes()
        logger.info("Connected to MongoDB database %s", store.name)
        yield

    app = FastAPI(title="Life Insurance Platform API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount(URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    app.include_router(users.router)
    app.include_router(blogs.router)
    app.include_router(policies.router)
    app.include_router(applications.router)
    app.include_router(reviews.router)
    app.include_router(claims.router)
    app.include_router(payments.router)

    @app.get("/")
    def read_root():
        return {"message": "Life Insurance Platform API Running!"}

    @app.get("/health")
    def health():
        return {"ok": True, "time": now()}

    @app.get("/test")
    def test_database(store: Store = Depends(get_store), settings: Settings = Depends(get_settings)):
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
            "database_name": settings.DATABASE_NAME,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            collections = store.db.list_collection_names()
            response["collections"] = collections[:10]
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
        except PyMongoError as e:
            response["database"] = f"⚠️ Connected but error: {str(e)[:80]}"
        return response

    return app


settings = Settings()
setup_logging(settings.LOG_LEVEL)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
