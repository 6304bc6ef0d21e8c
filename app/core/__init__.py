from .config import settings
from .database import engine, SessionLocal, get_db, Base, atomic

__all__ = ["settings", "engine", "SessionLocal", "get_db", "Base", "atomic"]
