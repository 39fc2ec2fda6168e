from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Cinema Booking API"
    API_V1_STR: str = "/api/v1"

    # "dev" shows unexpected error messages verbatim in 500 responses
    ENVIRONMENT: str = "prod"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "cinema_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Seat locking / sales
    SEAT_LOCK_TIMEOUT_SECONDS: float = 10.0
    SALES_REQUIRE_SCHEDULED_SHOWTIME: bool = False

    # Background sweep that completes finished showtimes
    SHOWTIME_SWEEP_SECONDS: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def is_postgres(self) -> bool:
        return self.DATABASE_URL.startswith("postgresql")

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
