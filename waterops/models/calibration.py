"""
Calibration Models
"""

from datetime import datetime
from waterops.extensions import db


class CalibrationSchedule(db.Model):
    """Recurring calibration for one meter"""
    __tablename__ = 'calibration_schedules'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    meter_name = db.Column(db.String(120), nullable=False)
    meter_type = db.Column(db.String(40), nullable=False, default='general')
    interval_days = db.Column(db.Integer, nullable=False, default=7)
    last_calibration_at = db.Column(db.DateTime)
    next_due_at = db.Column(db.DateTime, index=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey('users.id'))
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site = db.relationship('Site')
    assignee = db.relationship('User')
    logs = db.relationship('CalibrationLog', backref='schedule', lazy=True,
                           cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'meter_name': self.meter_name,
            'meter_type': self.meter_type,
            'interval_days': self.interval_days,
            'last_calibration_at': self.last_calibration_at.isoformat() if self.last_calibration_at else None,
            'next_due_at': self.next_due_at.isoformat() if self.next_due_at else None,
            'assigned_to': self.assigned_to,
            'notes': self.notes,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<CalibrationSchedule {self.meter_name} every {self.interval_days}d>'


class CalibrationLog(db.Model):
    """One completed calibration"""
    __tablename__ = 'calibration_logs'

    id = db.Column(db.Integer, primary_key=True)
    schedule_id = db.Column(db.Integer, db.ForeignKey('calibration_schedules.id'), nullable=False, index=True)
    calibrated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    calibrated_at = db.Column(db.DateTime, default=datetime.utcnow)
    pre_cal_reading = db.Column(db.Float)
    post_cal_reading = db.Column(db.Float)
    reference_value = db.Column(db.Float)
    deviation_percent = db.Column(db.Float)
    passed = db.Column(db.Boolean, default=True, nullable=False)
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            'id': self.id,
            'schedule_id': self.schedule_id,
            'calibrated_by': self.calibrated_by,
            'calibrated_at': self.calibrated_at.isoformat() if self.calibrated_at else None,
            'pre_cal_reading': self.pre_cal_reading,
            'post_cal_reading': self.post_cal_reading,
            'reference_value': self.reference_value,
            'deviation_percent': self.deviation_percent,
            'passed': self.passed,
            'notes': self.notes,
        }
