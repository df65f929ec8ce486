from flask import Blueprint, jsonify
from app.services.permission_service import PermissionService
from app.services.room_service import RoomService, ROOM_FIELDS
from app.utils.decorators import admin_required, token_optional, token_required
from app.utils.payload import json_body

rooms_bp = Blueprint('rooms', __name__)


# --- ROOMS ---

@rooms_bp.route('', methods=['GET'])
@token_optional
def get_rooms(principal):
    return jsonify([r.to_dict() for r in RoomService.list_rooms()]), 200


@rooms_bp.route('', methods=['POST'])
@token_required
@admin_required
def create_room(principal):
    data = json_body()
    room = RoomService().create_room(
        principal,
        name=data.get('name'),
        description=data.get('description', ''),
        capacity=data.get('capacity')
    )
    return jsonify(room.to_dict()), 201


@rooms_bp.route('/<int:room_id>', methods=['PUT'])
@token_required
def update_room(principal, room_id):
    data = {k: v for k, v in json_body().items() if k in ROOM_FIELDS}
    room = RoomService().update_room(principal, room_id, data)
    return jsonify(room.to_dict()), 200


@rooms_bp.route('/<int:room_id>', methods=['DELETE'])
@token_required
def delete_room(principal, room_id):
    RoomService().delete_room(principal, room_id)
    return jsonify({'success': True}), 200


# --- ROOM PERMISSIONS ---

@rooms_bp.route('/<int:room_id>/users', methods=['GET'])
@token_optional
def get_room_users(principal, room_id):
    entries = PermissionService().list_room_users(room_id)
    return jsonify([e.to_dict() for e in entries]), 200


@rooms_bp.route('/<int:room_id>/users', methods=['POST'])
@token_required
def add_room_user(principal, room_id):
    data = json_body()
    entry = PermissionService().add_room_user(principal, room_id, data.get('userEmail'), data.get('role'))
    return jsonify(entry.to_dict()), 201


@rooms_bp.route('/<int:room_id>/users', methods=['DELETE'])
@token_required
def remove_room_user(principal, room_id):
    data = json_body()
    PermissionService().remove_room_user(principal, room_id, data.get('userEmail'))
    return jsonify({'success': True}), 200
