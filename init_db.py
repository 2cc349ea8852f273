"""
Database initialization module for OfficeDesk
Handles SQLAlchemy setup and database creation
"""

import logging

from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash

# Initialize SQLAlchemy instance
db = SQLAlchemy()

logger = logging.getLogger(__name__)


def init_database(app):
    """
    Initialize database with the Flask app
    """
    with app.app_context():
        # Import all models to ensure they're registered with SQLAlchemy
        from models.user_model import User
        from models.course_model import Course
        from models.batch_model import Batch, BatchAdmission
        from models.lead_model import Lead, LeadFollowUp
        from models.lead_sequence_model import LeadSequence
        from models.admission_fee_model import AdmissionFee
        from models.income_model import Income
        from models.expense_model import Expense

        # Create all tables
        db.create_all()

        if app.config.get('CREATE_DEFAULT_ADMIN'):
            create_default_admin(app)

        logger.info("Database initialized successfully")


def create_default_admin(app):
    """
    Create a default SuperAdmin user if no users exist
    """
    from models.user_model import User
    from utils.roles import Role

    # Check if any users exist
    if User.query.count() == 0:
        admin_user = User(
            username=app.config['DEFAULT_ADMIN_USERNAME'],
            password=generate_password_hash(app.config['DEFAULT_ADMIN_PASSWORD']),
            full_name="System Administrator",
            role=Role.SUPER_ADMIN.value
        )

        db.session.add(admin_user)
        db.session.commit()
        logger.warning(
            f"Default SuperAdmin created (username: {admin_user.username}). "
            "Change the default password in production!"
        )
