import pytest
from werkzeug.security import generate_password_hash

from waterops import create_app
from waterops.config import TestConfig
from waterops.extensions import db
from waterops.models import User, Site


@pytest.fixture()
def app(tmp_path):
    class _Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'site_maps')

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def site(app):
    return Site.query.filter_by(name=app.config['DEFAULT_SITE_NAME']).first()


def make_user(email, password='testpass', role='operator', site_id=None, approved=True):
    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        role=role,
        site_id=site_id,
        is_approved=approved,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def operator(site):
    return make_user('operator@example.com', site_id=site.id)


@pytest.fixture()
def supervisor(site):
    return make_user('supervisor@example.com', role='supervisor', site_id=site.id)


def login(client, email, password='testpass'):
    return client.post('/login', json={'email': email, 'password': password})


@pytest.fixture()
def logged_in(client, operator):
    login(client, operator.email)
    return client


@pytest.fixture()
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling Resend."""
    sent = []

    def fake_send(to, subject, html, sender=None):
        sent.append({'to': to, 'subject': subject, 'html': html})
        return {'error': False, 'id': f'email-{len(sent)}'}

    monkeypatch.setattr('waterops.services.notifications.send_email', fake_send)
    return sent
