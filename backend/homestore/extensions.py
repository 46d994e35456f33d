# Overview: Shared Flask extension instances (database session and Alembic migrations).

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
# SQLite cannot ALTER most columns in place; batch mode rebuilds the table.
migrate = Migrate(render_as_batch=True)
