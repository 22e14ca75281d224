# app/database.py
import os
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.config import DATABASE_URL
from app import models  # noqa: F401  registra las tablas en SQLModel.metadata


@lru_cache(maxsize=None)
def get_engine(url: str = DATABASE_URL) -> Engine:
    if url.startswith("sqlite:///"):
        folder = os.path.dirname(url[len("sqlite:///"):])
        if folder:
            os.makedirs(folder, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def init_db(engine: Engine = None) -> None:
    SQLModel.metadata.create_all(engine or get_engine())


@contextmanager
def get_session(engine: Engine = None):
    with Session(engine or get_engine()) as session:
        yield session
