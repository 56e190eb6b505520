from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./freshdrop.db"
    database_echo: bool = False

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    # bearer value accepted for server-to-server calls (cron, other functions)
    service_role_key: Optional[str] = None

    resend_api_key: Optional[str] = None
    resend_api_base_url: str = "https://api.resend.com"
    mail_from: str = "FreshDrop <orders@freshdrop.app>"
    marketing_mail_from: str = "FreshDrop <hello@freshdrop.app>"

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_api_base_url: str = "https://api.twilio.com"

    http_timeout_seconds: float = 10
    dispatch_max_workers: int = 8
    max_dispatch_delay_minutes: int = 5

    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
