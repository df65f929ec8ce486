import hmac
import logging

import jwt
from datetime import datetime, timedelta, timezone
from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from app.extensions import db
from app.models import User
from app.services.locking import begin_write, run_atomic
from app.services.permission_store import normalise_email
from app.utils.errors import AlreadyExists, MissingFields, Unauthenticated

logger = logging.getLogger(__name__)


def derive_name(email):
    """Display name for a provisioned user: the local part of the email."""
    local = normalise_email(email).split('@', 1)[0]
    return local or email


class UserService:

    @staticmethod
    def find_by_email(email):
        email = normalise_email(email)
        if not email:
            return None
        return User.query.filter_by(email=email).first()

    @staticmethod
    def get_or_create_by_email(email, name=None):
        """Return ``(user, created)`` for ``email``, creating a plain user if needed.

        Safe to race: the insert runs in a savepoint and the unique index on
        ``users.email`` decides the winner. The loser rolls back its savepoint
        and reads the winner's row. Must run inside the caller's transaction;
        nothing is committed here.
        """
        email = normalise_email(email)
        if not email:
            raise MissingFields(['userEmail'])

        user = User.query.filter_by(email=email).first()
        if user is not None:
            return user, False

        try:
            with db.session.begin_nested():
                user = User(name=name or derive_name(email), email=email, role='user')
                db.session.add(user)
        except IntegrityError:
            user = User.query.filter_by(email=email).one()
            logger.debug("User %s was provisioned concurrently, reusing id=%s", email, user.id)
            return user, False

        logger.info("Provisioned user %s (id=%s)", email, user.id)
        return user, True

    @staticmethod
    def register(name, email, password, role='user'):
        missing = [f for f, v in (('name', name), ('email', email), ('password', password)) if not v]
        if missing:
            raise MissingFields(missing)
        email = normalise_email(email)

        def _create():
            begin_write()
            existing = User.query.filter_by(email=email).first()
            if existing is not None:
                if existing.password_hash:
                    raise AlreadyExists('User already exists.')
                # Provisioned by a booking or permission: claim the account
                existing.name = name
                existing.password_hash = generate_password_hash(password)
                return existing
            user = User(name=name, email=email, role=role, password_hash=generate_password_hash(password))
            try:
                with db.session.begin_nested():
                    db.session.add(user)
            except IntegrityError:
                raise AlreadyExists('User already exists.')
            return user

        return run_atomic(_create, 'register')

    @staticmethod
    def authenticate(email, password):
        if not email or not password:
            raise MissingFields([f for f, v in (('email', email), ('password', password)) if not v])
        user = UserService.find_by_email(email)
        if user is None or not user.password_hash:
            raise Unauthenticated('Invalid credentials.')

        stored = user.password_hash
        if '$' in stored:
            ok = check_password_hash(stored, password)
        else:
            # Not a werkzeug hash: legacy plaintext row, upgrade it on success
            ok = hmac.compare_digest(stored, password)
            if ok:
                user.password_hash = generate_password_hash(password)
                db.session.commit()
        if not ok:
            raise Unauthenticated('Invalid credentials.')
        return user

    @staticmethod
    def issue_token(user):
        expires = timedelta(seconds=current_app.config['JWT_EXPIRES_SECONDS'])
        return jwt.encode({
            'user_id': user.id,
            'email': user.email,
            'role': user.role,
            'exp': datetime.now(timezone.utc) + expires
        }, current_app.config['SECRET_KEY'], algorithm=current_app.config['JWT_ALGORITHM'])

    @staticmethod
    def user_from_token(token):
        """Decode a bearer token and load the fresh user row behind it."""
        try:
            data = jwt.decode(token, current_app.config['SECRET_KEY'],
                              algorithms=[current_app.config['JWT_ALGORITHM']])
        except jwt.PyJWTError as e:
            raise Unauthenticated('Token is invalid!') from e
        user_id = data.get('user_id')
        user = db.session.get(User, user_id) if user_id is not None else None
        if user is None:
            raise Unauthenticated('Token is invalid!')
        return user

    @staticmethod
    def ensure_default_admin(email=None, password=None):
        """Create the default admin account, or repair its role and password."""
        email = normalise_email(email or current_app.config['DEFAULT_ADMIN_EMAIL'])
        password = password or current_app.config['DEFAULT_ADMIN_PASSWORD']
        admin = User.query.filter_by(email=email).first()
        if admin is None:
            admin = User(name='Admin', email=email, role='admin',
                         password_hash=generate_password_hash(password))
            db.session.add(admin)
            logger.info("Default admin %s created", email)
        else:
            if not admin.password_hash or admin.password_hash == password:
                admin.password_hash = generate_password_hash(password)
            if admin.role != 'admin':
                admin.role = 'admin'
        db.session.commit()
        return admin
