from init_db import db
from utils.timezone_helper import utc_now
from utils.roles import Role


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    role = db.Column(db.String(50), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utc_now)
    is_deleted = db.Column(db.Integer, default=0)

    @property
    def role_enum(self):
        return Role.parse(self.role)

    def has_role(self, role):
        return self.role_enum == role

    def to_public_dict(self):
        """Display-safe projection used wherever a user is embedded in another record"""
        return {
            "id": self.id,
            "name": self.full_name,
            "email": self.email,
        }

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
