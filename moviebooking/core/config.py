from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Movie Booking API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "moviebooking_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Bookings
    PENDING_BOOKING_TTL_MINUTES: int = 10
    RECLAIM_INTERVAL_SECONDS: int = 60

    # Membership: 1 point per POINTS_CURRENCY_UNIT spent
    POINTS_CURRENCY_UNIT: int = 10000

    # Payment provider: "mock" approves every charge, "http" calls PAYMENT_PROVIDER_URL
    PAYMENT_PROVIDER: str = "mock"
    PAYMENT_PROVIDER_URL: str = "http://localhost:9000/charges"
    PAYMENT_TIMEOUT_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
