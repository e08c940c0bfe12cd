import os
from typing import List, Union, Optional
from pydantic_settings import BaseSettings
from pydantic import validator


class Settings(BaseSettings):
    API_V1_STR: str = "/v1"
    PROJECT_NAME: str = "IT Desk API"

    # Used to build deep links back into the web application
    APP_BASE_URL: str = "http://localhost:3000"

    # CORS Configuration
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # JWT Configuration (tokens are issued by the surrounding web application)
    JWT_SECRET: str = "temporarysecret"
    JWT_ALGORITHM: str = "HS256"

    # Database Configuration
    MYSQL_HOST: Optional[str] = None
    MYSQL_USER: Optional[str] = None
    MYSQL_PASSWORD: Optional[str] = None
    MYSQL_DATABASE: Optional[str] = None
    MYSQL_PORT: Optional[str] = None

    DATABASE_URI: Optional[str] = None

    @validator("DATABASE_URI", pre=True)
    def assemble_db_connection(cls, v: Optional[str], values: dict) -> Optional[str]:
        if v:
            return v

        database_url = os.getenv("DATABASE_URL")
        if database_url:
            return database_url

        db_params = ['MYSQL_USER', 'MYSQL_PASSWORD', 'MYSQL_HOST', 'MYSQL_PORT', 'MYSQL_DATABASE']
        if all(values.get(x) for x in db_params):
            connection_string = "mysql+pymysql://"
            connection_string += f"{values.get('MYSQL_USER')}:{values.get('MYSQL_PASSWORD')}"
            connection_string += f"@{values.get('MYSQL_HOST')}:{values.get('MYSQL_PORT')}/{values.get('MYSQL_DATABASE')}"
            return connection_string

        return None

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    # SMTP email channel. Without SMTP_USER/SMTP_PASS the channel is a no-op.
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # True for implicit TLS (port 465)
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_SENDER_NAME: str = "NHF IT Support"
    SMTP_TIMEOUT: float = 30.0
    SMTP_MAX_RETRIES: int = 3
    IT_TEAM_EMAIL: Optional[str] = None

    # LINE Messaging API. Without an access token push/broadcast are no-ops.
    LINE_CHANNEL_ACCESS_TOKEN: Optional[str] = None
    LINE_IT_TEAM_USER_ID: Optional[str] = None  # unset => broadcast to all followers
    LINE_WEBHOOK_URL: Optional[str] = None
    LINE_API_URL: str = "https://api.line.me/v2/bot/message"
    NOTIFICATION_HTTP_TIMEOUT: float = 10.0

    DISPLAY_TIMEZONE: str = "Asia/Bangkok"

    @property
    def clean_app_base_url(self) -> str:
        """Return APP_BASE_URL without trailing slash"""
        return self.APP_BASE_URL.rstrip('/')

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_USER and self.SMTP_PASS)

    class Config:
        env_file = None
        case_sensitive = True
        frozen = True


settings = Settings()
