from flask import Blueprint, jsonify
from app.extensions import db
from app.models import User
from app.services.user_service import UserService
from app.utils.decorators import token_required
from app.utils.errors import NotFound
from app.utils.payload import json_body

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    data = json_body()
    user = UserService.register(data.get('name'), data.get('email'), data.get('password'))
    token = UserService.issue_token(user)
    return jsonify({'token': token, 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    user = UserService.authenticate(data.get('email'), data.get('password'))
    token = UserService.issue_token(user)
    return jsonify({'token': token, 'user': user.to_dict()})


@auth_bp.route('/me', methods=['GET'])
@token_required
def me(principal):
    user = db.session.get(User, principal.user_id)
    if not user:
        raise NotFound('User not found.')
    return jsonify(user.to_dict())
