from app.db.session import SessionLocal, atomic, engine, get_db

__all__ = ["engine", "SessionLocal", "get_db", "atomic"]
