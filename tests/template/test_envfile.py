import re
from datetime import datetime, timezone

import pytest

from cloudbot.config.models import PlatformSecrets
from cloudbot.errors import ValidationError
from cloudbot.template.envfile import iso_timestamp, render_env_file
from cloudbot.workloads.models import WorkloadDescriptor

KEYS = [
    "BOT_NAME",
    "BOT_TOKEN",
    "SERVICES",
    "PORT",
    "WEATHER_API_KEY",
    "NEWS_API_KEY",
    "GEMINI_API_KEY",
    "WEATHER_CITY",
    "PLATFORM_VERSION",
    "CREATED_AT",
]


def _descriptor():
    return WorkloadDescriptor(
        id=42, name="WeatherBot", token="123:abc-DEF", capabilities=("clima", "ia"), owner_id=1
    )


def _parse(text):
    return [tuple(line.split("=", 1)) for line in text.splitlines()]


def test_env_file_keys_and_values_in_order():
    secrets = PlatformSecrets(weather_api_key="w-key", gemini_api_key="g-key")
    text = render_env_file(
        _descriptor(), secrets, created_at=datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
    )
    pairs = _parse(text)
    assert [k for k, _ in pairs] == KEYS
    values = dict(pairs)
    assert values["BOT_NAME"] == "WeatherBot"
    assert values["BOT_TOKEN"] == "123:abc-DEF"
    assert values["SERVICES"] == "clima,ia"
    assert values["PORT"] == "3000"
    assert values["WEATHER_API_KEY"] == "w-key"
    assert values["NEWS_API_KEY"] == ""
    assert values["GEMINI_API_KEY"] == "g-key"
    assert values["WEATHER_CITY"] == "Buenos Aires"
    assert values["PLATFORM_VERSION"] == "1.0.0"
    assert values["CREATED_AT"] == "2026-10-18T09:30:00.000Z"
    assert text.endswith("\n")


def test_missing_secrets_render_empty():
    values = dict(_parse(render_env_file(_descriptor(), PlatformSecrets())))
    assert values["WEATHER_API_KEY"] == ""
    assert values["NEWS_API_KEY"] == ""
    assert values["GEMINI_API_KEY"] == ""


def test_deterministic_apart_from_timestamp():
    secrets = PlatformSecrets(news_api_key="n")
    a = render_env_file(_descriptor(), secrets)
    b = render_env_file(_descriptor(), secrets)
    mask = lambda t: re.sub(r"^CREATED_AT=.*$", "CREATED_AT=<ts>", t, flags=re.M)
    assert mask(a) == mask(b)


def test_iso_timestamp_treats_naive_as_utc():
    assert iso_timestamp(datetime(2026, 1, 2, 3, 4, 5, 678000)) == "2026-01-02T03:04:05.678Z"


@pytest.mark.parametrize(
    "kw",
    [dict(token="1:abc\nPORT=9999"), dict(name="funbot\r"), dict(capabilities=("clima\nPORT=1",))],
)
def test_line_breaks_in_values_are_rejected(kw):
    base = dict(id=1, name="funbot", token="1:abc", capabilities=("ia",), owner_id=1)
    base.update(kw)
    with pytest.raises(ValidationError, match="line breaks"):
        render_env_file(WorkloadDescriptor(**base), PlatformSecrets())


def test_line_break_in_platform_secret_is_rejected():
    with pytest.raises(ValidationError):
        render_env_file(_descriptor(), PlatformSecrets(gemini_api_key="g\nPORT=1"))
