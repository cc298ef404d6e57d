# tests/conftest.py

import pytest

from config import Config


@pytest.fixture
def app_with_db(tmp_path):
    """
    Creates a new app instance for a test, sets up an in-memory database,
    and yields the app within an application context.
    """
    from buyer_ledger import create_app, db

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app_with_db):
    return app_with_db.test_client()
