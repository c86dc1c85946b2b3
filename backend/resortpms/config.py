"""
应用配置
从环境变量 / .env 读取配置
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "ResortPMS"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./resortpms.db"

    # 预订确认码：与已有确认码冲突时的最大重试次数
    CONFIRMATION_CODE_MAX_ATTEMPTS: int = 10

    # 审计 / 事件总线
    AUDIT_MAX_LOGS: int = 10000
    EVENT_HISTORY_SIZE: int = 100

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# 全局设置实例
settings = Settings()
