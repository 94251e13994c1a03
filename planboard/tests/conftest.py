import pytest
from flask_jwt_extended import create_access_token

from planboard import create_app
from planboard.core.users.models import User
from planboard.domains.projects.services.project_service import create_project, create_section
from planboard.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


@pytest.fixture()
def app():
    """Per-test app on a fresh in-memory database; rules run inline."""
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user(app):
    user = User(email="owner@example.com", name="Olive Owner")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def other_user(app):
    user = User(email="helper@example.com", name="Harper Helper")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def project(app, user):
    return create_project(user.id, name="Launch")


@pytest.fixture()
def sections(app, project):
    """``To Do`` and ``Done`` sections keyed by name."""
    return {
        name: create_section(project.id, name=name)
        for name in ("To Do", "Done")
    }


@pytest.fixture()
def auth_headers(app, user):
    token = create_access_token(identity=user.id)
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
