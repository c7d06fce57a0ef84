from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import get_settings

DATABASE_URL = get_settings().database_url

# sqlite needs to be shared across the threadpool FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# create engine
engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

# session maker
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# base class
Base = declarative_base()


def init_db():
    import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=engine)


# dependency (VERY IMPORTANT for FastAPI)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
