from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi import Request
from inventory_service.domain.models import Base

REQUIRED_TABLES = ("inventory", "inventory_adjustments")

def build_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed across threads by the ASGI worker pool
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=echo, future=True, pool_pre_ping=True, connect_args=connect_args)

def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db(request: Request) -> Session:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def init_models(engine: Engine) -> None:
    Base.metadata.create_all(engine)

def check_connection(engine: Engine) -> None:
    """Round-trip a trivial query; raises SQLAlchemyError when the store is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1")).fetchone()
