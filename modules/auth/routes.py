"""HTTP routes for registration, login and the current session."""

from flask import abort, jsonify, session
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError

from extensions import db, login_manager
from models import MAX_PASSWORD_BYTES, ROLE_ADMIN, ROLE_STAFF, ROLES, User, normalize_email
from permissions import is_admin, require_role
from utils import clean_str, get_payload

from . import bp

MIN_PASSWORD_LENGTH = 6


@login_manager.user_loader
def load_user(user_id: str | None) -> User | None:
    """Resolve a ``User`` instance for Flask-Login sessions."""
    if not user_id:
        return None
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(message="Authentication required."), 401


@bp.route('/register', methods=['POST'])
def register():
    data = get_payload()
    name = clean_str(data.get('name'))
    email = clean_str(data.get('email'))
    password = data.get('password') or ''
    if not isinstance(password, str):
        abort(400, description="Password must be a string.")
    role = (clean_str(data.get('role')) or ROLE_STAFF).upper()

    if not name or not email or not password:
        abort(400, description="Name, email and password are required.")
    if '@' not in email:
        abort(400, description="Email address is not valid.")
    if len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        abort(400, description="Password is too long.")
    if role not in ROLES:
        abort(400, description=f"Unknown role: {role}.")
    if role != ROLE_STAFF and not is_admin():
        abort(403, description="Only an ADMIN can assign elevated roles.")

    email = normalize_email(email)
    if User.query.filter_by(email=email).first():
        abort(409, description="Email is already registered.")

    user = User(name=name, email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race against a concurrent signup with the same email
        db.session.rollback()
        abort(409, description="Email is already registered.")

    return jsonify(message="User registered.", user=user.to_dict()), 201


@bp.route('/login', methods=['POST'])
def login():
    data = get_payload()
    email = normalize_email(str(data.get('email') or ''))
    password = str(data.get('password') or '')

    user = User.query.filter_by(email=email).first() if email else None
    if user is None or not user.check_password(password):
        abort(401, description="Invalid email or password.")

    login_user(user)
    session.permanent = True
    return jsonify(message="Logged in.", user=user.to_dict())


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    session.clear()
    return jsonify(message="Logged out.")


@bp.route('/me')
@login_required
def me():
    return jsonify(user=current_user.to_dict())


@bp.route('/users')
@require_role(ROLE_ADMIN)
def list_users():
    users = User.query.order_by(User.id).all()
    return jsonify(users=[u.to_dict() for u in users])
