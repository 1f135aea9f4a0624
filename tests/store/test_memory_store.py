import pytest

from cloudbot.errors import RecordNotFoundError
from cloudbot.store.memory import InMemoryStatusStore
from cloudbot.workloads.models import BotStatus, CreateBotRequest


def _req(owner=1, name="funbot"):
    return CreateBotRequest(owner_id=owner, name=name, token="1:t", capabilities=["clima"])


def test_insert_assigns_ids_and_creating_status():
    s = InMemoryStatusStore()
    a = s.insert(_req(name="alphabot"))
    b = s.insert(_req(name="betabot"))
    assert (a.id, b.id) == (1, 2)
    assert a.status == BotStatus.CREATING
    assert s.get(a.id).name == "alphabot"


def test_list_by_owner_newest_first_and_scoped():
    s = InMemoryStatusStore()
    s.insert(_req(owner=1, name="alphabot"))
    s.insert(_req(owner=2, name="otherbot"))
    s.insert(_req(owner=1, name="betabot"))
    names = [r.name for r in s.list_by_owner(1)]
    assert names == ["betabot", "alphabot"]


def test_update_overwrites_fields_and_rejects_unknown():
    s = InMemoryStatusStore()
    rec = s.insert(_req())
    out = s.update(rec.id, status=BotStatus.ERROR, error_message="boom")
    assert out.status == BotStatus.ERROR
    assert s.list_by_status(BotStatus.ERROR)[0].error_message == "boom"
    with pytest.raises(ValueError):
        s.update(rec.id, name="renamed")


def test_returned_records_are_copies():
    s = InMemoryStatusStore()
    rec = s.insert(_req())
    rec.capabilities.append("ia")
    assert s.get(rec.id).capabilities == ["clima"]


def test_missing_records():
    s = InMemoryStatusStore()
    with pytest.raises(RecordNotFoundError):
        s.get(99)
    with pytest.raises(RecordNotFoundError):
        s.update(99, status=BotStatus.ACTIVE)
    assert s.delete(99) is False
    rec = s.insert(_req())
    assert s.delete(rec.id) is True
