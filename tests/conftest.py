import pytest

from repair_shop.db import AppDatabase
from repair_shop.errors import TransportError
from repair_shop.models import RepairJob
from repair_shop.repositories import RepairRepository, SmsLogRepository
from repair_shop.state import AppState


@pytest.fixture
def db(tmp_path):
    return AppDatabase(str(tmp_path / "app_data.db"), str(tmp_path / "backups")).initialize()


@pytest.fixture
def repairs_repo(db):
    return RepairRepository(db)


@pytest.fixture
def sms_repo(db):
    return SmsLogRepository(db)


@pytest.fixture
def state(repairs_repo, sms_repo):
    return AppState(repairs_repo, sms_repo)


@pytest.fixture
def make_job():
    def _make(**overrides):
        fields = dict(customer_name="Alice Johnson", phone="555-0100", model="Pixel 7",
                      imei="356938035643809", problem="Cracked screen")
        fields.update(overrides)
        return RepairJob(**fields)
    return _make


class FakeTransport:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to_number, message):
        if self.fail:
            raise TransportError("permission denied")
        self.sent.append((to_number, message))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(fail=True)
