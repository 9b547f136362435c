from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.logging import get_logger
from app.core.settings import settings
from app.services.errors import ScheduleError, TransactionFailure

_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

log = get_logger(__name__)


def get_db() -> Generator[Session, None, None]:
    """Dependency do FastAPI: abre uma sessão por request e fecha no final."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Executa o bloco como UMA transação: commit no fim, rollback em qualquer erro.
    Erros de domínio sobem como estão; falhas do banco viram TransactionFailure.
    """
    try:
        yield db
        db.commit()
    except ScheduleError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("db.transaction.rollback", error=str(exc))
        raise TransactionFailure(
            "Não foi possível salvar as alterações; nada foi persistido."
        ) from exc
    except Exception:
        db.rollback()
        raise


__all__ = ["engine", "SessionLocal", "get_db", "atomic"]
