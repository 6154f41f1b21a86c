from app import create_app
from extensions import db
from models import MAX_PASSWORD_BYTES, ROLES, User, normalize_email
from startup import connect_store


def create_user(app, name, email, password, role):
    """Create an account unless the email is already registered. Returns the user or None."""
    email = normalize_email(email)
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"Password is longer than {MAX_PASSWORD_BYTES} bytes.")
        return None
    with app.app_context():
        connect_store()
        existing_user = User.query.filter_by(email=email).first()
        if existing_user:
            print(f"User '{email}' already exists with role '{existing_user.role}'.")
            return None

        user = User(name=name, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Created user: {email} (role: {role})")
        return user


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Create a new user.')
    parser.add_argument('name', help='Display name')
    parser.add_argument('email', help='Login email')
    parser.add_argument('password', help='Password')
    parser.add_argument('role', choices=ROLES, type=str.upper, help='User role')

    args = parser.parse_args()
    create_user(create_app(), args.name, args.email, args.password, args.role)
