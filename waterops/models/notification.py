"""
Email Notification Models
"""

from datetime import datetime
from waterops.extensions import db


class EmailRecipient(db.Model):
    """Address that receives alert and reminder emails"""
    __tablename__ = 'email_recipients'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    # Severities this recipient wants ('warning', 'critical') or 'all'
    alert_types = db.Column(db.JSON, nullable=False, default=lambda: ['all'])
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def wants(self, alert_type):
        types = self.alert_types or ['all']
        return 'all' in types or alert_type in types

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'name': self.name,
            'email': self.email,
            'is_active': self.is_active,
            'alert_types': list(self.alert_types or []),
        }

    def __repr__(self):
        return f'<EmailRecipient {self.email}>'


class EmailLog(db.Model):
    """Delivery outcome for one outgoing email"""
    __tablename__ = 'email_logs'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'))
    alert_event_id = db.Column(db.Integer, db.ForeignKey('alert_events.id'))
    recipient_email = db.Column(db.String(120), nullable=False)
    recipient_name = db.Column(db.String(120))
    subject = db.Column(db.String(255), nullable=False)
    body = db.Column(db.Text)
    status = db.Column(db.String(16), nullable=False)
    provider_id = db.Column(db.String(120))
    fail_reason = db.Column(db.Text)
    sent_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'alert_event_id': self.alert_event_id,
            'recipient_email': self.recipient_email,
            'subject': self.subject,
            'status': self.status,
            'provider_id': self.provider_id,
            'fail_reason': self.fail_reason,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
        }
