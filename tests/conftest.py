"""
Shared fixtures: an app on in-memory SQLite, one user per role, a course and
a batch, and helpers to act as a user either directly or through the client.
"""

import pytest
from werkzeug.security import generate_password_hash

from config import TestingConfig
from init_db import db
from models.batch_model import Batch
from models.course_model import Course
from models.user_model import User
from officedesk_app import create_app
from utils.auth import CurrentUser
from utils.roles import Role


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(username, role, full_name=None):
    user = User(
        username=username,
        password=generate_password_hash("secret"),
        full_name=full_name or username.title(),
        email=f"{username}@officedesk.test",
        role=role.value,
    )
    db.session.add(user)
    return user


@pytest.fixture
def users(app):
    """One user per role plus a second Admission member"""
    created = {
        "dm": _make_user("marketing", Role.DIGITAL_MARKETING),
        "admission": _make_user("rahim", Role.ADMISSION),
        "admission2": _make_user("karim", Role.ADMISSION),
        "accountant": _make_user("ledger", Role.ACCOUNTANT),
        "admin": _make_user("admin", Role.ADMIN),
        "superadmin": _make_user("root", Role.SUPER_ADMIN),
        "recruitment": _make_user("hr", Role.RECRUITMENT),
    }
    db.session.commit()
    return created


@pytest.fixture
def course(app):
    course = Course(course_name="Full Stack Web Development", course_code="FSWD", fee=25000)
    db.session.add(course)
    db.session.commit()
    return course


@pytest.fixture
def batch(app, course):
    batch = Batch(name="FSWD Evening 01", course_id=course.id)
    db.session.add(batch)
    db.session.commit()
    return batch


@pytest.fixture
def as_actor():
    """CurrentUser for calling services directly"""
    def _actor(user):
        return CurrentUser(id=user.id, role=Role.parse(user.role))
    return _actor


@pytest.fixture
def login_as(client):
    """Write the session identity the external login flow would issue"""
    def _login(user):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id
            sess["role"] = user.role
        return client
    return _login
