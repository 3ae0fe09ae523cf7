from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine
from sqlalchemy.engine import Engine


def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # in-memory databases live and die with a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)

def get_session(engine: Engine) -> Session:
    return Session(engine)
