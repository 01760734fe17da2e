import ast
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from typed_cache import Cache, MemoryDriver, RedisDriver
from typed_cache.domain.errors import CacheError, DecodeError, DriverError, EncodeError, InvalidDurationError
from typed_cache.domain.validation import to_duration, validate_key
from typed_cache.infrastructure.config import Settings, load_settings
from typed_cache.infrastructure.logging import JsonFormatter, configure_logging
from typed_cache.main import build_cache, build_driver


pytestmark = [pytest.mark.unit]

PACKAGE_ROOT = Path(__file__).resolve().parent.parent / "typed_cache"


def _imported_modules(path: Path) -> set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    modules = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            modules.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            modules.add(node.module)
    return modules


@pytest.mark.parametrize("layer, forbidden", [
    ("domain", ("typed_cache.application", "typed_cache.infrastructure", "redis")),
    ("application", ("typed_cache.infrastructure", "redis", "msgpack")),
])
def test_inner_layers_do_not_depend_on_outer_layers(layer, forbidden):
    for path in (PACKAGE_ROOT / layer).glob("*.py"):
        for module in _imported_modules(path):
            assert not module.startswith(forbidden), f"{path.name} imports {module}"


def test_validate_key_rejects_non_string():
    with pytest.raises(TypeError, match="Key must be a string"):
        validate_key(123)  # type: ignore[arg-type]


def test_to_duration_accepts_timedelta_and_seconds():
    assert to_duration(timedelta(minutes=1)) == timedelta(minutes=1)
    assert to_duration(5) == timedelta(seconds=5)
    assert to_duration(0.5) == timedelta(milliseconds=500)

    with pytest.raises(InvalidDurationError):
        to_duration(True)  # type: ignore[arg-type]
    with pytest.raises(InvalidDurationError):
        to_duration(-0.1)


def test_error_taxonomy():
    for error in (InvalidDurationError, DecodeError, EncodeError):
        assert issubclass(error, CacheError)
        assert issubclass(error, ValueError)
    assert issubclass(DriverError, CacheError)
    assert not issubclass(DriverError, ValueError)


def test_json_formatter_renders_payload():
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test"
    assert "exc_info" not in payload


def test_json_formatter_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exc_info"]


def test_configure_logging_supports_text_and_json_formatters():
    configure_logging("DEBUG", "text")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)

    configure_logging("info", "json")
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


class TestSettings:
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = load_settings()

        assert settings.driver == "memory"
        assert settings.default_expiration_seconds == 86400
        assert settings.max_items == 1000
        assert settings.max_memory_mb == 100
        assert settings.max_value_bytes == 100 * 1024 * 1024
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_reads_environment(self):
        env = {
            "CACHE_DRIVER": "Redis",
            "CACHE_DEFAULT_EXPIRATION_SECONDS": "60",
            "CACHE_REDIS_URL": "redis://cache:6380/2",
            "CACHE_REDIS_SOCKET_TIMEOUT": "2",
            "CACHE_MAX_ITEMS": "5",
            "CACHE_LOG_LEVEL": "debug",
            "CACHE_LOG_FORMAT": "json",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = load_settings()

        assert settings.driver == "redis"
        assert settings.default_expiration_seconds == 60
        assert settings.redis_url == "redis://cache:6380/2"
        assert settings.redis_socket_timeout == 2
        assert settings.max_items == 5
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"

    @pytest.mark.parametrize("env, message", [
        ({"CACHE_DEFAULT_EXPIRATION_SECONDS": "0"}, "CACHE_DEFAULT_EXPIRATION_SECONDS must be >= 1"),
        ({"CACHE_MAX_ITEMS": "not-an-int"}, "CACHE_MAX_ITEMS must be an integer"),
        ({"CACHE_MAX_MEMORY_MB": "0"}, "CACHE_MAX_MEMORY_MB must be >= 1"),
        ({"CACHE_MAX_MEMORY_MB": "1", "CACHE_MAX_VALUE_BYTES": "2000000"}, "CACHE_MAX_VALUE_BYTES must be <="),
        ({"CACHE_DRIVER": "memcached"}, "CACHE_DRIVER must be one of memory, redis"),
        ({"CACHE_LOG_FORMAT": "xml"}, "CACHE_LOG_FORMAT must be one of text, json"),
    ])
    def test_invalid_environment(self, env, message):
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValueError, match=message):
                load_settings()

    def test_settings_are_frozen_and_validated(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.max_items = 3  # type: ignore[misc]
        with pytest.raises(ValidationError):
            Settings(default_expiration_seconds=0)


class TestWiring:
    def test_build_memory_driver(self):
        driver = build_driver(Settings(max_items=7, max_memory_mb=2, max_value_bytes=10))
        try:
            assert isinstance(driver, MemoryDriver)
            assert driver.store.max_items == 7
            assert driver.store.max_memory_bytes == 2 * 1024 * 1024
            assert driver.store.max_value_bytes == 10
        finally:
            driver.close()

    def test_build_redis_driver(self):
        with patch.object(RedisDriver, "from_url") as from_url:
            driver = build_driver(Settings(driver="redis", redis_url="redis://x:1/0", redis_socket_timeout=3))

        from_url.assert_called_once_with(
            "redis://x:1/0", socket_timeout=3, socket_connect_timeout=3
        )
        assert driver is from_url.return_value

    def test_build_cache_from_environment(self):
        with patch.dict("os.environ", {"CACHE_DEFAULT_EXPIRATION_SECONDS": "120"}, clear=True):
            cache = build_cache()
        try:
            assert isinstance(cache, Cache)
            assert cache.default_expiration == timedelta(seconds=120)
            cache.set_int("n", 1)
            assert cache.get_int("n") == 1
        finally:
            cache.driver.close()

    def test_build_cache_configures_logging_on_request(self):
        settings = Settings(log_level="DEBUG", log_format="json")
        with patch("typed_cache.main.configure_logging") as configure:
            cache = build_cache(settings, configure_logs=True)
        try:
            configure.assert_called_once_with("DEBUG", "json")
        finally:
            cache.driver.close()

    def test_build_cache_leaves_logging_alone_by_default(self):
        with patch("typed_cache.main.configure_logging") as configure:
            cache = build_cache(Settings())
        try:
            configure.assert_not_called()
        finally:
            cache.driver.close()
