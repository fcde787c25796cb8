import pytest

from _store_publisher.store_api import StoreAPI
from tests.helpers import BASE_URL, PRODUCER_ID, FakeSession


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def api(session: FakeSession) -> StoreAPI:
    return StoreAPI(
        producer_id=PRODUCER_ID,
        token="secret-token",
        session=session,
        base_url=BASE_URL,
    )
