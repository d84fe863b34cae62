"""
客户端配置

配置文件 (默认 sci-config.json):

    {
        "tenant_url": "https://<tenant>.accounts.ondemand.com",
        "client_id": "...",
        "client_secret": "..."
    }

没有写在文件中的凭据从环境变量读取：
SCI_USERNAME / SCI_PASSWORD / SCI_CLIENT_ID / SCI_CLIENT_SECRET
"""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_CONFIG_FILE = "sci-config.json"

ENV_CREDENTIALS = {
    "username": "SCI_USERNAME",
    "password": "SCI_PASSWORD",
    "client_id": "SCI_CLIENT_ID",
    "client_secret": "SCI_CLIENT_SECRET",
}


class ConfigError(Exception):
    """配置错误"""
    pass


class ClientConfig(BaseModel):
    tenant_url: str
    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("tenant_url")
    @classmethod
    def check_tenant_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")) or len(v.split("://", 1)[1].strip("/")) == 0:
            raise ValueError("tenant_url must be an absolute http(s) URL")
        return v.rstrip("/")


def load_config(path: str = DEFAULT_CONFIG_FILE) -> ClientConfig:
    """
    读取配置

    Raises:
        ConfigError: 文件格式错误或配置无效
    """
    data = {}
    config_file = Path(path)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except ValueError as e:
            raise ConfigError(f"{path} 格式错误: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} 格式错误: 必须是 JSON 对象")

    for key, env in ENV_CREDENTIALS.items():
        if not data.get(key) and os.environ.get(env):
            data[key] = os.environ[env]

    try:
        return ClientConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
