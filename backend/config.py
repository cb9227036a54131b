import os
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

load_dotenv()


class Config:
    """Flask settings."""
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


DEFAULT_SERVICE_NAME = 'easyapi'
DEFAULT_VERSION = 'v1'
DEFAULT_LISTEN_ADDR = ':8080'


class ServiceConf(BaseModel):
    """
    Service identity and serving options.

    Values are normalized once on construction and the model is frozen:
    - service_name / version: surrounding slashes and whitespace removed,
      empty values fall back to defaults
    - listen_addr: "host:port" or ":port"
    - http_proxy: public address the docs advertise (trailing slash removed)
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    service_name: str = DEFAULT_SERVICE_NAME
    version: str = DEFAULT_VERSION
    description: str = ""
    build_time: str = ""
    listen_addr: str = DEFAULT_LISTEN_ADDR
    http_proxy: str = ""
    debug_on: bool = True

    @field_validator('service_name', 'version', mode='before')
    @classmethod
    def normalize_path_segment(cls, v, info):
        v = (v or "").strip().strip("/")
        if not v:
            return DEFAULT_SERVICE_NAME if info.field_name == 'service_name' else DEFAULT_VERSION
        if "/" in v or " " in v:
            raise ValueError(f"{info.field_name} must be a single path segment, got {v!r}")
        return v

    @field_validator('listen_addr', mode='before')
    @classmethod
    def normalize_listen_addr(cls, v):
        v = (v or "").strip() or DEFAULT_LISTEN_ADDR
        host, sep, port = v.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"listen_addr must look like 'host:port' or ':port', got {v!r}")
        return v

    @field_validator('http_proxy', mode='before')
    @classmethod
    def normalize_http_proxy(cls, v):
        return (v or "").strip().rstrip("/")

    @property
    def base_path(self) -> str:
        return f"/{self.service_name}/{self.version}"

    def api_path(self, api_id: str) -> str:
        return f"{self.base_path}/{api_id}"

    @property
    def listen_host(self) -> str:
        host = self.listen_addr.rpartition(":")[0]
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        return int(self.listen_addr.rpartition(":")[2])

    @property
    def scheme(self) -> str:
        return "https" if self.http_proxy.startswith("https://") else "http"

    @property
    def host(self) -> str:
        """Host (and optional path prefix) clients reach the service on."""
        if self.http_proxy:
            if "://" in self.http_proxy:
                parsed = urlparse(self.http_proxy)
                return parsed.netloc + parsed.path
            return self.http_proxy
        host, _, port = self.listen_addr.rpartition(":")
        if host in ("", "0.0.0.0"):
            host = "localhost"
        return f"{host}:{port}"

    def public_url(self, path: str) -> str:
        """Absolute URL for a path on this service (used for docs links)."""
        return f"{self.scheme}://{self.host}{path}"

    @classmethod
    def from_env(cls) -> "ServiceConf":
        """Build from environment variables (read at call time)."""
        return cls(
            service_name=os.getenv('SERVICE_NAME', DEFAULT_SERVICE_NAME),
            version=os.getenv('SERVICE_VERSION', DEFAULT_VERSION),
            description=os.getenv('SERVICE_DESCRIPTION', ''),
            build_time=os.getenv('BUILD_TIME', ''),
            listen_addr=os.getenv('LISTEN_ADDR', DEFAULT_LISTEN_ADDR),
            http_proxy=os.getenv('HTTP_PROXY_URL', ''),
            debug_on=os.getenv('DEBUG_ON', 'true').lower() == 'true',
        )
