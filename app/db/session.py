# app/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool


def build_engine(database_uri: str) -> Engine:
    """
    Crea el motor (engine) de SQLAlchemy para la URI indicada.
    SQLite se comparte entre hilos del servidor; en memoria usa una sola conexión.
    """
    if database_uri.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_uri or database_uri in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_uri, **kwargs)
    return create_engine(database_uri, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    # Fábrica de sesiones que se usará para crear sesiones individuales.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Función generadora para obtener instancias de base de datos
def session_scope(session_factory: sessionmaker):
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()
