# Overview: Flask extension instances for database and migrations.

import os

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "migrations")

db = SQLAlchemy()
migrate = Migrate(directory=MIGRATIONS_DIR)
