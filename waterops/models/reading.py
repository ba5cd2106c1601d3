"""
Process Reading Models
"""

from datetime import datetime
from waterops.extensions import db


class Reading(db.Model):
    """A single operator-entered process reading"""
    __tablename__ = 'readings'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    metric_id = db.Column(db.String(40), nullable=False, index=True)
    value = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text)
    entered_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'metric_id': self.metric_id,
            'value': self.value,
            'notes': self.notes,
            'entered_by': self.entered_by,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
        }

    def __repr__(self):
        return f'<Reading Site:{self.site_id} {self.metric_id}:{self.value}>'


class Threshold(db.Model):
    """Site operating range for a parameter; overrides the catalog watch band"""
    __tablename__ = 'thresholds'
    __table_args__ = (db.UniqueConstraint('site_id', 'metric_id'),)

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False)
    metric_id = db.Column(db.String(40), nullable=False)
    min_value = db.Column(db.Float)
    max_value = db.Column(db.Float)
    enabled = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'metric_id': self.metric_id,
            'min_value': self.min_value,
            'max_value': self.max_value,
            'enabled': self.enabled,
        }

    def __repr__(self):
        return f'<Threshold {self.metric_id} {self.min_value}-{self.max_value}>'
