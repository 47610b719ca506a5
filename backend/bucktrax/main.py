from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bucktrax.api.error_handlers import register_error_handlers
from bucktrax.api.routers import bucktrax, feature_weights, features, properties, seasons
from bucktrax.config import get_settings
from bucktrax.db import init_db
from bucktrax.utils.logging import get_logger, setup_logging

settings = get_settings()
setup_logging(
    debug=settings.debug,
    log_dir=settings.log_dir,
    log_max_bytes=settings.log_max_bytes,
    log_backup_count=settings.log_backup_count,
)
logger = get_logger("bucktrax.main")

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)


@app.get("/health")
def health():
    return {"ok": True}


# 初回起動時にDBスキーマを作成
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("startup_complete", app=settings.app_name)

app.include_router(properties.router,      prefix="/properties", tags=["properties"])
app.include_router(features.router,        prefix="/properties", tags=["features"])
app.include_router(seasons.router,         prefix="/properties", tags=["seasons"])
app.include_router(feature_weights.router, prefix="/properties", tags=["feature-weights"])
app.include_router(bucktrax.router,        prefix="/bucktrax",   tags=["bucktrax"])
