"""
User Model
"""

from datetime import datetime
from flask_login import UserMixin
from waterops.extensions import db


class User(UserMixin, db.Model):
    """Operator account; login requires admin approval"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(120))
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default='operator', nullable=False)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'))
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    approved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    site = db.relationship('Site', backref='members')

    @property
    def is_supervisor(self):
        return self.role in ('supervisor', 'admin')

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'display_name': self.display_name,
            'role': self.role,
            'site_id': self.site_id,
            'is_approved': self.is_approved,
            'approved_at': self.approved_at.isoformat() if self.approved_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'
