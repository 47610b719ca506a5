from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from pathlib import Path

from bucktrax.config import get_settings
from bucktrax.models.base import Base
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)

# 1) DATABASE_URL が指定されていれば優先（例: postgresql+psycopg://...）
# 2) それ以外は data/bucktrax.db の SQLite
_database_url_env = get_settings().database_url
if _database_url_env:
    SQLALCHEMY_DATABASE_URL = _database_url_env
    _is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")
else:
    _container_data = Path("/app/data")
    if _container_data.exists():
        db_path = _container_data / "bucktrax.db"
    else:
        # backend/bucktrax/db.py → ../../.. = <repo root>
        repo_root = Path(__file__).resolve().parents[2]
        db_path = repo_root / "data" / "bucktrax.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    SQLALCHEMY_DATABASE_URL = f"sqlite:///{db_path}"
    _is_sqlite = True

_connect_args = {"check_same_thread": False} if _is_sqlite else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def safe_url(url) -> str:
    return url.render_as_string(hide_password=True)


def init_db(bind=None) -> None:
    # 各モデルモジュールを明示 import してメタデータ登録を確実化
    import bucktrax.models.property  # noqa: F401
    import bucktrax.models.property_feature  # noqa: F401
    import bucktrax.models.season_override  # noqa: F401
    import bucktrax.models.feature_weight  # noqa: F401
    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("database_initialized", url=safe_url(target.url))


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
