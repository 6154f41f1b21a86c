from flask_cors import CORS
from flask_login import LoginManager
from flask_session import Session
from flask_sqlalchemy import SQLAlchemy

# Extensions are created unbound and attached by create_app()

# Database
db = SQLAlchemy()

# Authenticated user kept in the server-side session
login_manager = LoginManager()

# Server-held session store
server_session = Session()

# Cross-origin policy for the frontend
cors = CORS()
