import pytest

from mission_remote.models import Credentials, Endpoint
from mission_remote.session import Session


@pytest.fixture
def session():
    return Session(
        Endpoint(host="seedbox.local", port=9091),
        Credentials(username="joe", password="secret"),
    )
