from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    zbpay_api_key: str = Field("", alias="ZBPAY_API_KEY")
    zbpay_api_secret: str = Field("", alias="ZBPAY_API_SECRET")
    zbpay_base_url: str = Field(
        "https://zbnet.zb.co.zw/wallet_sandbox_api/payments-gateway",
        alias="ZBPAY_BASE_URL",
    )
    zbpay_timeout_seconds: float = Field(20.0, alias="ZBPAY_TIMEOUT_SECONDS")
    # Confirm webhook pushes against the gateway status endpoint before settling
    zbpay_verify_webhooks: bool = Field(False, alias="ZBPAY_VERIFY_WEBHOOKS")

    default_currency_code: int = Field(840, alias="DEFAULT_CURRENCY_CODE")  # 840 USD, 924 ZWL
    admin_notification_user_id: str = Field("admin-001", alias="ADMIN_NOTIFICATION_USER_ID")
    default_student_password: str = Field("student123", alias="DEFAULT_STUDENT_PASSWORD")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
