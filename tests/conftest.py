import pytest

from hellohttp import create_app
from hellohttp.settings import Settings


@pytest.fixture
def settings():
    return Settings(size_response_len='52')


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
