from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://user:password@db:5432/property_db"
    SQL_ECHO: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"
    JWT_SECRET: str = "your_jwt_secret"
    USER_MANAGEMENT_URL: str = "http://user-management:8000"
    # Blob service that stores the image bytes; the catalog only keeps URLs
    IMAGE_STORE_URL: str = "http://image-store:8000"
    IMAGE_STORE_API_KEY: str = "your_image_store_key"
    IMAGE_STORE_TIMEOUT: float = 30.0
    # Redis pub/sub channel for property lifecycle events
    EVENTS_CHANNEL: str = "property-events"
    RATE_LIMIT_ENABLED: bool = True
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
