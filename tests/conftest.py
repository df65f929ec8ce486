import pytest
from datetime import datetime, timedelta, timezone
from app import create_app, db
from app.models import User, Room, RoomPermission, Principal
from app.config import TestingConfig
from app.services.user_service import UserService


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def init_data(app):
    """Admin, three plain users and two rooms; carol administers room A."""
    admin = User(name='Admin', email='admin@example.com', role='admin')
    alice = User(name='Alice', email='alice@example.com', role='user')
    bob = User(name='Bob', email='bob@example.com', role='user')
    carol = User(name='Carol', email='carol@example.com', role='user')
    room_a = Room(name='Room A', description='First floor', capacity=4)
    room_b = Room(name='Room B', description='Second floor', capacity=10)
    db.session.add_all([admin, alice, bob, carol, room_a, room_b])
    db.session.flush()
    db.session.add(RoomPermission(room_id=room_a.id, user_email='carol@example.com', role='admin'))
    db.session.commit()
    return {
        'admin': admin, 'alice': alice, 'bob': bob, 'carol': carol,
        'room_a': room_a, 'room_b': room_b,
    }


@pytest.fixture
def principals(init_data):
    return {name: Principal.from_user(init_data[name]) for name in ('admin', 'alice', 'bob', 'carol')}


@pytest.fixture
def auth_headers(app, init_data):
    def _headers(name):
        token = UserService.issue_token(init_data[name])
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def tomorrow():
    """Tomorrow 00:00 UTC, so tests can build [10:00, 11:00) style intervals."""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=1)
