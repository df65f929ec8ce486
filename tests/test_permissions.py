import pytest
from app import db
from app.models import Room, RoomPermission, User
from app.services.permission_service import PermissionService
from app.services.permission_store import SQLPermissionStore
from app.services.room_service import RoomService
from app.utils.errors import AlreadyExists, Forbidden, MissingFields, NotFound


@pytest.fixture
def service(app):
    return PermissionService()


def roles(room):
    return {e.user_email: e.role for e in SQLPermissionStore().list_for_room(room.id)}


def test_sql_store_reads_roles(init_data):
    store = SQLPermissionStore()
    room_a = init_data['room_a']
    assert store.role_for(room_a.id, 'carol@example.com') == 'admin'
    assert store.role_for(room_a.id, ' CAROL@example.com ') == 'admin'
    assert store.role_for(init_data['room_b'].id, 'carol@example.com') is None
    assert store.count_admins(room_a.id) == 1


def test_global_admin_adds_room_user(service, principals, init_data):
    entry = service.add_room_user(principals['admin'], init_data['room_b'].id, 'Bob@Example.com', 'admin')
    assert entry.to_dict() == {'userEmail': 'bob@example.com', 'role': 'admin'}
    assert roles(init_data['room_b']) == {'bob@example.com': 'admin'}


def test_re_adding_overwrites_the_role(service, principals, init_data):
    room = init_data['room_b']
    service.add_room_user(principals['admin'], room.id, 'bob@example.com', 'user')
    service.add_room_user(principals['admin'], room.id, 'bob@example.com', 'admin')
    assert RoomPermission.query.filter_by(room_id=room.id).count() == 1
    assert roles(room) == {'bob@example.com': 'admin'}


def test_adding_unknown_email_provisions_user(service, principals, init_data):
    service.add_room_user(principals['carol'], init_data['room_a'].id, 'newbie@example.com', 'user')
    user = User.query.filter_by(email='newbie@example.com').one()
    assert user.name == 'newbie'


def test_room_admin_manages_peers_in_own_room(service, principals, init_data):
    room = init_data['room_a']
    service.add_room_user(principals['carol'], room.id, 'alice@example.com', 'admin')
    assert service.remove_room_user(principals['carol'], room.id, 'alice@example.com')
    assert roles(room) == {'carol@example.com': 'admin'}


def test_room_admin_cannot_touch_other_rooms(service, principals, init_data):
    with pytest.raises(Forbidden):
        service.add_room_user(principals['carol'], init_data['room_b'].id, 'alice@example.com', 'user')


def test_room_member_cannot_manage_permissions(service, principals, init_data):
    room = init_data['room_a']
    service.add_room_user(principals['admin'], room.id, 'alice@example.com', 'user')
    with pytest.raises(Forbidden):
        service.add_room_user(principals['alice'], room.id, 'bob@example.com', 'user')
    with pytest.raises(Forbidden):
        service.remove_room_user(principals['alice'], room.id, 'carol@example.com')


def test_room_admin_cannot_remove_last_admin(service, principals, init_data):
    room = init_data['room_a']
    with pytest.raises(Forbidden):
        service.remove_room_user(principals['carol'], room.id, 'carol@example.com')
    with pytest.raises(Forbidden):
        service.add_room_user(principals['carol'], room.id, 'carol@example.com', 'user')
    assert roles(room) == {'carol@example.com': 'admin'}


def test_room_admin_can_step_down_when_another_admin_exists(service, principals, init_data):
    room = init_data['room_a']
    service.add_room_user(principals['carol'], room.id, 'alice@example.com', 'admin')
    service.add_room_user(principals['carol'], room.id, 'carol@example.com', 'user')
    assert roles(room) == {'alice@example.com': 'admin', 'carol@example.com': 'user'}


def test_global_admin_may_leave_room_without_admin(service, principals, init_data):
    assert service.remove_room_user(principals['admin'], init_data['room_a'].id, 'carol@example.com')
    assert roles(init_data['room_a']) == {}


def test_removing_missing_entry_is_a_no_op(service, principals, init_data):
    assert not service.remove_room_user(principals['admin'], init_data['room_b'].id, 'nobody@example.com')


def test_add_validation(service, principals, init_data):
    with pytest.raises(MissingFields):
        service.add_room_user(principals['admin'], init_data['room_a'].id, '', 'user')
    with pytest.raises(MissingFields):
        service.add_room_user(principals['admin'], init_data['room_a'].id, 'x@example.com', 'owner')
    with pytest.raises(NotFound):
        service.add_room_user(principals['admin'], 999, 'x@example.com', 'user')


def test_room_delete_cascades_permissions(principals, init_data):
    room_id = init_data['room_a'].id
    with pytest.raises(Forbidden):
        RoomService().delete_room(principals['carol'], room_id)
    assert RoomPermission.query.filter_by(room_id=room_id).count() == 1

    RoomService().delete_room(principals['admin'], room_id)
    assert db.session.get(Room, room_id) is None
    assert RoomPermission.query.filter_by(room_id=room_id).count() == 0


def test_room_crud_rules(principals, init_data):
    rooms = RoomService()
    with pytest.raises(Forbidden):
        rooms.create_room(principals['carol'], 'Carol Room')
    room = rooms.create_room(principals['admin'], 'Boardroom', 'Top floor', 12)
    with pytest.raises(AlreadyExists):
        rooms.create_room(principals['admin'], 'Boardroom')

    with pytest.raises(Forbidden):
        rooms.update_room(principals['carol'], room.id, {'capacity': 14})
    updated = rooms.update_room(principals['admin'], room.id, {'capacity': 14, 'description': 'Penthouse'})
    assert updated.capacity == 14

    with pytest.raises(Forbidden):
        rooms.delete_room(principals['alice'], room.id)
