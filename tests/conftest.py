import pytest

from halcache import Hal, HalSettings

from fakes import FakeHttp, FakeStorage


@pytest.fixture
def settings():
    return HalSettings(_env_file=None, PREFIX="hal_", AUTO_DUMP_DELAY=0.01)


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def hal(http, storage, settings):
    hal = Hal().init(http=http, storage=storage, settings=settings)
    yield hal
    hal.clear()
