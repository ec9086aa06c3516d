"""配置模块：从环境变量与 .env 文件读取设置，并缓存为单例。

加载顺序：``ENV_FILE`` 指定的文件优先且独占；否则先读 ``.env``，
再按 ``ENVIRONMENT``（如 ``production``）叠加 ``.env.production``。
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[4]


def _env_files() -> list[Path]:
    override = os.getenv("ENV_FILE")
    if override:
        return [PROJECT_ROOT / override]
    files = [PROJECT_ROOT / ".env"]
    environment = os.getenv("ENVIRONMENT")
    if environment:
        files.append(PROJECT_ROOT / (environment if environment.startswith(".env") else f".env.{environment}"))
    return files


for _path in _env_files():
    if _path.is_file():
        # 后加载的文件覆盖先加载的；已有的进程环境变量只被显式的 ENV_FILE 覆盖
        load_dotenv(_path, override=_path.name != ".env", encoding="utf-8")


class Settings(BaseSettings):
    """应用设置，每个字段都可由同名大写环境变量覆盖。"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # 应用
    project_name: str = Field("Freelancer Drive API", alias="PROJECT_NAME")
    api_v1_str: str = Field("/api/v1", alias="API_V1_STR")
    debug: bool = Field(False, alias="DEBUG")
    app_port: int = Field(8000, alias="APP_PORT")
    timezone: str = Field("UTC", alias="TIMEZONE")
    public_origin: str = Field("http://127.0.0.1:8000", alias="PUBLIC_ORIGIN")

    # 记录存储
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")
    database_host: str = Field("localhost", alias="DATABASE_HOST")
    database_port: int = Field(5432, alias="DATABASE_PORT")
    database_user: str = Field("postgres", alias="DATABASE_USER")
    database_password: str = Field("postgres", alias="DATABASE_PASSWORD")
    database_name: str = Field("freelancer_drive", alias="DATABASE_NAME")
    database_echo: bool = Field(False, alias="DATABASE_ECHO")

    # 视图状态缓存
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    redis_db: int = Field(0, alias="REDIS_DB")

    # 认证
    jwt_secret_key: str = Field("changeme", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # 日志
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("log", alias="LOG_DIR")
    log_file_name: str = Field("app.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(False, alias="LOG_JSON")

    # 存储网关：LOCAL 或 S3
    storage_type: str = Field("LOCAL", alias="STORAGE_TYPE")
    storage_bucket: str = Field("file_storage", alias="STORAGE_BUCKET")
    storage_local_root: str = Field("storage", alias="STORAGE_LOCAL_ROOT")
    s3_region: Optional[str] = Field(None, alias="S3_REGION")
    s3_access_key_id: Optional[str] = Field(None, alias="S3_ACCESS_KEY_ID")
    s3_secret_access_key: Optional[str] = Field(None, alias="S3_SECRET_ACCESS_KEY")
    s3_endpoint_url: Optional[str] = Field(None, alias="S3_ENDPOINT_URL")
    s3_custom_domain: Optional[str] = Field(None, alias="S3_CUSTOM_DOMAIN")

    # 文件管理
    recent_files_limit: int = Field(20, alias="RECENT_FILES_LIMIT")
    thumbnail_width: int = Field(256, alias="THUMBNAIL_WIDTH")

    @property
    def sql_database_url(self) -> str:
        """完整的 DATABASE_URL 优先，否则拼接 PostgreSQL 连接串。"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @staticmethod
    def _absolute(raw: str) -> Path:
        path = Path(raw)
        return path if path.is_absolute() else PROJECT_ROOT / path

    @property
    def log_directory(self) -> Path:
        return self._absolute(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        return self.log_directory / self.log_file_name

    @property
    def storage_root_path(self) -> Path:
        return self._absolute(self.storage_local_root)

    @property
    def timezone_info(self) -> ZoneInfo:
        """配置的时区；名称无法识别时按 UTC 处理。"""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")


@lru_cache
def get_settings() -> Settings:
    return Settings()
