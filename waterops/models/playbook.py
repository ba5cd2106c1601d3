"""
Site Playbook Model
"""

from datetime import datetime
from waterops.extensions import db


class SitePlaybook(db.Model):
    """Site-level override of a default remediation playbook"""
    __tablename__ = 'site_playbooks'
    __table_args__ = (db.UniqueConstraint('site_id', 'metric_id', 'condition'),)

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False)
    metric_id = db.Column(db.String(40), nullable=False)
    condition = db.Column(db.String(8), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    # Ordered lists; JSON keeps operator ordering intact
    steps = db.Column(db.JSON, nullable=False, default=list)
    reference_links = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'metric_id': self.metric_id,
            'condition': self.condition,
            'title': self.title,
            'steps': list(self.steps or []),
            'reference_links': list(self.reference_links or []),
            'is_active': self.is_active,
            'is_default': False,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<SitePlaybook {self.metric_id}/{self.condition}>'
