"""
Site Models
"""

from datetime import datetime
from flask import url_for
from waterops.extensions import db


class Site(db.Model):
    """A treatment facility; readings, thresholds and alerts are scoped to it"""
    __tablename__ = 'sites'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255))
    timezone = db.Column(db.String(64), default='UTC')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    maps = db.relationship('SiteMap', backref='site', lazy=True,
                           cascade='all, delete-orphan', order_by='SiteMap.id')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'timezone': self.timezone,
        }

    def __repr__(self):
        return f'<Site {self.name}>'


class SiteMap(db.Model):
    """Uploaded site plan image, optionally geo-referenced"""
    __tablename__ = 'site_maps'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255))
    file_name = db.Column(db.String(255))
    storage_path = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(64))
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def public_url(self):
        return url_for('environment.site_map_file', filename=self.storage_path, _external=True)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'name': self.name,
            'description': self.description,
            'file_name': self.file_name,
            'mime_type': self.mime_type,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'public_url': self.public_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<SiteMap {self.name} site:{self.site_id}>'


class SiteMetricConfig(db.Model):
    """Per-site enabled flag and display order for a parameter"""
    __tablename__ = 'site_metric_config'
    __table_args__ = (db.UniqueConstraint('site_id', 'metric_id'),)

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False)
    metric_id = db.Column(db.String(40), nullable=False)
    is_enabled = db.Column(db.Boolean, default=True, nullable=False)
    display_order = db.Column(db.Integer)
