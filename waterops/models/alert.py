"""
Alert Event Model
"""

from datetime import datetime
from waterops.extensions import db


class AlertEvent(db.Model):
    """Threshold breach raised from a reading.

    Lifecycle: active -> acknowledged -> resolved.
    """
    __tablename__ = 'alert_events'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), index=True)
    reading_id = db.Column(db.Integer, db.ForeignKey('readings.id'))
    metric_id = db.Column(db.String(40), nullable=False)
    metric_name = db.Column(db.String(80), nullable=False)
    value = db.Column(db.Float, nullable=False)
    threshold_min = db.Column(db.Float)
    threshold_max = db.Column(db.Float)
    condition = db.Column(db.String(8))
    severity = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), default='active', nullable=False, index=True)
    triggered_at = db.Column(db.DateTime, default=datetime.utcnow)
    acknowledged_at = db.Column(db.DateTime)
    acknowledged_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    resolved_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)

    site = db.relationship('Site')

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'reading_id': self.reading_id,
            'metric_id': self.metric_id,
            'metric_name': self.metric_name,
            'value': self.value,
            'threshold_min': self.threshold_min,
            'threshold_max': self.threshold_max,
            'condition': self.condition,
            'severity': self.severity,
            'status': self.status,
            'triggered_at': self.triggered_at.isoformat() if self.triggered_at else None,
            'acknowledged_at': self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            'acknowledged_by': self.acknowledged_by,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<AlertEvent {self.metric_id}:{self.value} {self.severity}/{self.status}>'
