from sqlalchemy import BIGINT, Integer, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Generator

class DatabaseSettings(BaseSettings):
    """Database configuration from environment"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./mastodon_analytics.db"

# Initialize settings
db_settings = DatabaseSettings()

# Create SQLAlchemy engine
engine = create_engine(
    db_settings.database_url,
    pool_pre_ping=True,
    pool_recycle=300
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

def get_db() -> Generator[Session, None, None]:
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# BIGINT surrogate keys; SQLite only autoincrements INTEGER primary keys
BigIntegerPK = BIGINT().with_variant(Integer(), "sqlite")
