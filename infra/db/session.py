from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


def make_engine(sqlite_path: str) -> Engine:
    # handlers run in FastAPI's threadpool and in queue workers
    return create_engine(
        f"sqlite:///{sqlite_path}",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False,
                        expire_on_commit=False, future=True)


def init_db(engine: Engine) -> None:
    from infra.db import models  # noqa: F401  (registers tables on Base.metadata)
    Base.metadata.create_all(bind=engine)
