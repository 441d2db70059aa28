from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from clubhub.extensions import db
from clubhub.models.constants import USER_STATUSES, check_in
from clubhub.utils.dates import iso

USERS_TABLE = "users"


class User(db.Model):
    __tablename__ = USERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20))
    image = db.Column(db.String(255))
    status = db.Column(db.String(20), check_in("status", USER_STATUSES), default="active", index=True)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = db.relationship("Member", back_populates="user", cascade="all, delete-orphan")
    athletes = db.relationship("Athlete", back_populates="user")
    coaches = db.relationship("Coach", back_populates="user")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "image": self.image,
            "status": self.status,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"
