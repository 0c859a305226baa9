from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from soundmap.settings import DATABASE_URL


def make_engine(url: str = DATABASE_URL):
    # FastAPI runs sync routes in a threadpool; SQLite must allow that
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True, echo=False)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
