import pytest

from cloudbot.errors import ValidationError
from cloudbot.workloads import naming
from cloudbot.workloads.models import BotRecord, BotStatus


def test_names_for_weatherbot_42():
    assert naming.image_tag("weatherbot", 42) == "weatherbot-42:latest"
    assert naming.deployment_name("weatherbot", 42) == "bot-weatherbot-42"
    assert naming.service_name("weatherbot") == "weatherbot-service"


def test_names_are_lowercased():
    assert naming.image_tag("WeatherBot", 7) == "weatherbot-7:latest"
    assert naming.deployment_name("WeatherBot", 7) == "bot-weatherbot-7"
    assert naming.service_name("WeatherBot") == "weatherbot-service"


def test_public_url_keeps_case_and_internal_address():
    assert naming.public_url("FunBot") == "https://t.me/FunBot"
    assert naming.public_url("funbot", "https://t.me/") == "https://t.me/funbot"
    assert (
        naming.internal_address("funbot", "bot-platform")
        == "http://funbot-service.bot-platform.svc.cluster.local"
    )


@pytest.mark.parametrize("bad", ["", "fun bot", "fun;rm -rf", "-funbot", "funbot-", "fün-bot", "a/b"])
def test_unsafe_names_are_refused(bad):
    with pytest.raises(ValidationError):
        naming.image_tag(bad, 1)


def test_bad_id_is_refused():
    with pytest.raises(ValidationError):
        naming.deployment_name("funbot", -1)
    with pytest.raises(ValidationError):
        naming.deployment_name("funbot", "1")


def test_record_descriptor_is_immutable():
    rec = BotRecord(id=3, owner_id=9, name="NewsBot", token="1:abc", capabilities=["noticias", "clima"])
    assert rec.status == BotStatus.CREATING
    d = rec.descriptor()
    assert d.normalized_name == "newsbot"
    assert d.capabilities == ("noticias", "clima")
    assert d.services_csv() == "noticias,clima"
    with pytest.raises(Exception):
        d.name = "other"


@pytest.mark.parametrize("bad", ["funbot\n", "funbot\r\n", "fun\nbot"])
def test_line_breaks_in_names_are_refused(bad):
    with pytest.raises(ValidationError):
        naming.deployment_name(bad, 1)
    with pytest.raises(ValidationError):
        naming.service_name(bad)
