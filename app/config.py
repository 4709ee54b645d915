from pydantic_settings import BaseSettings
from pydantic import SecretStr
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    app_name: str = "Quiz Assessment API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database Configuration
    user: str = os.getenv("user", "postgres")
    password: SecretStr = SecretStr(os.getenv("password", ""))
    host: str = os.getenv("host", "localhost")
    port: int = int(os.getenv("port", 5432))
    dbname: str = os.getenv("dbname", "postgres")
    database_url: Optional[str] = os.getenv("DATABASE_URL")

    # Ranking: "score" or "score_then_percentage"
    ranking_tie_break: str = os.getenv("RANKING_TIE_BREAK", "score_then_percentage")
    leaderboard_size: int = int(os.getenv("LEADERBOARD_SIZE", 50))
    neighbor_window: int = int(os.getenv("NEIGHBOR_WINDOW", 5))

    # Client timing telemetry
    max_time_spent_seconds: int = int(os.getenv("MAX_TIME_SPENT_SECONDS", 86400))

    # Analytics thresholds
    quality_alert_min_attempts: int = 5
    quality_alert_min_incorrect_rate: float = 60.0
    quality_alert_limit: int = 6
    most_missed_limit: int = 5
    struggling_limit: int = 8
    question_insight_limit: int = 10
    guess_accuracy: float = 0.8
    guess_max_seconds: float = 5.0
    struggle_accuracy: float = 0.5

    # Notification fan-out
    max_receivers: int = int(os.getenv("MAX_RECEIVERS", 1000))
    max_connections_per_ip: int = int(os.getenv("MAX_CONNECTIONS_PER_IP", 20))
    rate_limit_window: int = int(os.getenv("RATE_LIMIT_WINDOW", 60))  # seconds
    max_requests_per_window: int = int(os.getenv("MAX_REQUESTS_PER_WINDOW", 30))
    heartbeat_interval: int = int(os.getenv("HEARTBEAT_INTERVAL", 30))  # seconds

    @property
    def DATABASE_URL(self):
        if self.database_url:
            return self.database_url
        return f"postgresql+psycopg2://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.dbname}?sslmode=require"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()
