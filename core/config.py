from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 1️⃣ Database
    DATABASE_URL: str = "sqlite:///./cms.db"
    DATABASE_ECHO: bool = False

    # 2️⃣ Public URLs
    APP_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:5173"

    # 3️⃣ Logging
    LOG_LEVEL: str = "INFO"

    # 4️⃣ Contact inquiries
    CONTACT_DUPLICATE_WINDOW_MINUTES: int = 10
    CONTACT_REFERENCE_PREFIX: str = "HIS"

    # 5️⃣ Resources
    WORDS_PER_MINUTE: int = 200

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
