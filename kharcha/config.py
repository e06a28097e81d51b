from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    telegram_bot_token: str
    allowed_chat_ids: list[int] = []
    report_chat_id: int | None = None

    @field_validator("allowed_chat_ids", mode="before")
    @classmethod
    def parse_chat_ids(cls, v):
        if isinstance(v, str):
            return [int(x.strip()) for x in v.split(",") if x.strip()]
        if isinstance(v, int):
            return [v]
        return v

    cron_secret: str | None = None
    db_path: str = "kharcha.db"
    timezone: str = "Asia/Kolkata"
    debug: bool = False

    host: str = "0.0.0.0"
    port: int = 8080
    webhook_url: str | None = None
    webhook_path: str = "/api/telegram/webhook"
    webhook_secret: str | None = None
    telegram_timeout: float = Field(default=10.0, gt=0)

    morning_hour: int = Field(default=9, ge=0, le=23)
    evening_hour: int = Field(default=20, ge=0, le=23)
    weekend_hour: int = Field(default=18, ge=0, le=23)
    month_end_hour: int = Field(default=21, ge=0, le=23)
    month_end_days: int = 3
    auto_materialize_salary: bool = True

    critical_balance: Decimal = Decimal("2000")
    warning_balance: Decimal = Decimal("5000")
    caution_overspend: Decimal = Decimal("2000")
    mild_overspend: Decimal = Decimal("500")

    @property
    def reminder_chat_id(self) -> int | None:
        if self.report_chat_id is not None:
            return self.report_chat_id
        return self.allowed_chat_ids[0] if self.allowed_chat_ids else None


settings = Settings()
