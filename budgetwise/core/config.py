from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "BudgetWise"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://localhost:8000",
        ]
    )

    # Analytics tunables
    MAJOR_CATEGORY_COUNT: int = Field(default=8, ge=1)
    TOP_TRANSACTIONS_LIMIT: int = Field(default=10, ge=1)
    FORECAST_WINDOW: int = Field(default=3, ge=1)
    FORECAST_HISTORY_MONTHS: int = Field(default=6, ge=1)
    SPIKE_SIGMA: float = 2.5
    MINIMUM_SPIKE_AMOUNT: float = 250.0
    ANOMALY_Z_THRESHOLD: float = 2.0
    ANOMALY_MAD_THRESHOLD: float = 3.5

    # Budget thresholds used for overspending checks
    BUDGET_THRESHOLDS_JSON: str = Field(default="config/budget_thresholds.json")

    # Budgets and goals live in memory unless a JSON file is configured
    STORE_PATH: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
