"""
Site Services

Site lookup and scoping of requests to the caller's site.
"""

from flask import current_app

from waterops.extensions import db
from waterops.models import Site


class SiteNotFound(LookupError):
    """Raised when a request names a site that does not exist."""


class InvalidSiteId(ValueError):
    """Raised when a requested site id is not an integer."""


def default_site():
    """The site configured as DEFAULT_SITE_NAME, created on first use."""
    name = current_app.config['DEFAULT_SITE_NAME']
    site = Site.query.filter_by(name=name).first()
    if site is None:
        site = Site(name=name, timezone=current_app.config.get('DEFAULT_SITE_TIMEZONE', 'UTC'))
        db.session.add(site)
        db.session.commit()
    return site


def resolve_site_id(user, requested=None):
    """Site a request operates on.

    Supervisors may target any site explicitly; everyone else is pinned to
    their own site, falling back to the default site.
    """
    if requested is not None and user is not None and user.is_supervisor:
        try:
            site_id = int(requested)
        except (TypeError, ValueError):
            raise InvalidSiteId(f'Invalid site_id: {requested}')
        if db.session.get(Site, site_id) is None:
            raise SiteNotFound(f'Site {requested} not found')
        return site_id
    if user is not None and user.site_id:
        return user.site_id
    return default_site().id


def create_site(name, address=None, timezone=None):
    name = (name or '').strip()
    if not name:
        raise ValueError('Site name is required')
    site = Site(name=name, address=address, timezone=timezone or 'UTC')
    db.session.add(site)
    db.session.commit()
    return site
