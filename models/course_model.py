from init_db import db
from sqlalchemy import Enum, String, Integer, Float, DateTime
from utils.timezone_helper import utc_now


class Course(db.Model):
    """Course catalog entry; maintained outside the lead pipeline and read here"""
    __tablename__ = 'courses'

    id = db.Column(Integer, primary_key=True)
    course_name = db.Column(String(120), nullable=False, unique=True)
    course_code = db.Column(String(20), unique=True)  # Short code like "DM-ADV", "PY-FULL"
    fee = db.Column(Float, nullable=False, default=0.0)
    status = db.Column(Enum("Active", "Inactive", "Archived", name="course_status"), default='Active')
    created_at = db.Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<Course {self.course_name}>"
