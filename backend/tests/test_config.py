"""
Service configuration tests.
"""

import pytest
from pydantic import ValidationError

from config import ServiceConf


class TestServiceConf:
    """Normalization of service identity and addresses."""

    def test_defaults(self):
        conf = ServiceConf()

        assert conf.service_name == "easyapi"
        assert conf.version == "v1"
        assert conf.base_path == "/easyapi/v1"
        assert conf.listen_host == "0.0.0.0"
        assert conf.listen_port == 8080
        assert conf.host == "localhost:8080"
        assert conf.scheme == "http"

    def test_slashes_stripped(self):
        conf = ServiceConf(service_name="/routeguide/", version=" v2/ ")

        assert conf.base_path == "/routeguide/v2"
        assert conf.api_path("getFeature") == "/routeguide/v2/getFeature"

    def test_empty_values_fall_back(self):
        conf = ServiceConf(service_name="", version="/", listen_addr="")

        assert conf.service_name == "easyapi"
        assert conf.version == "v1"
        assert conf.listen_addr == ":8080"

    @pytest.mark.parametrize("name", ["route/guide", "route guide"])
    def test_name_must_be_one_segment(self, name):
        with pytest.raises(ValidationError):
            ServiceConf(service_name=name)

    @pytest.mark.parametrize("addr", ["8080", "host:", "host:http", ":0", ":70000"])
    def test_bad_listen_addr(self, addr):
        with pytest.raises(ValidationError):
            ServiceConf(listen_addr=addr)

    def test_listen_host(self):
        conf = ServiceConf(listen_addr="127.0.0.1:9000")

        assert conf.listen_host == "127.0.0.1"
        assert conf.listen_port == 9000
        assert conf.host == "127.0.0.1:9000"

    def test_proxy(self):
        conf = ServiceConf(http_proxy="https://api.example.com/")

        assert conf.host == "api.example.com"
        assert conf.scheme == "https"
        assert conf.public_url("/swaggerJSON") == "https://api.example.com/swaggerJSON"

    def test_proxy_without_scheme(self):
        conf = ServiceConf(http_proxy="gateway.local:8000")

        assert conf.host == "gateway.local:8000"
        assert conf.scheme == "http"

    def test_frozen(self):
        conf = ServiceConf()
        with pytest.raises(ValidationError):
            conf.service_name = "other"


class TestFromEnv:
    """Environment variables are read when from_env() is called."""

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("SERVICE_NAME", "routeguide")
        monkeypatch.setenv("SERVICE_VERSION", "v3")
        monkeypatch.setenv("SERVICE_DESCRIPTION", "Route guide")
        monkeypatch.setenv("BUILD_TIME", "2024-05-01")
        monkeypatch.setenv("LISTEN_ADDR", ":9090")
        monkeypatch.setenv("HTTP_PROXY_URL", "https://gw.example.com")
        monkeypatch.setenv("DEBUG_ON", "false")

        conf = ServiceConf.from_env()

        assert conf.base_path == "/routeguide/v3"
        assert conf.description == "Route guide"
        assert conf.build_time == "2024-05-01"
        assert conf.listen_port == 9090
        assert conf.host == "gw.example.com"
        assert conf.debug_on is False

    def test_env_defaults(self, monkeypatch):
        for name in ("SERVICE_NAME", "SERVICE_VERSION", "LISTEN_ADDR", "HTTP_PROXY_URL", "DEBUG_ON"):
            monkeypatch.delenv(name, raising=False)

        conf = ServiceConf.from_env()

        assert conf.base_path == "/easyapi/v1"
        assert conf.debug_on is True
