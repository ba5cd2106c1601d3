from datetime import datetime, timedelta

import pytest
import requests

from waterops.extensions import db
from waterops.models import AlertEvent, EmailLog, EmailRecipient, OdourIncident, Site
from waterops.services.calibration import create_schedule
from waterops.services.notifications import (
    send_email, send_alert_email, send_calibration_reminders, violation_text, alert_subject,
    send_odour_alert, send_odour_digest, odour_digest_stats, EmailNotConfigured,
)


class FakeResponse:
    def __init__(self, status_code, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


def make_alert(site_id, value=5.5, severity='critical'):
    alert = AlertEvent(site_id=site_id, metric_id='ph', metric_name='pH', value=value,
                       threshold_min=6.5, threshold_max=8.5, condition='low',
                       severity=severity, triggered_at=datetime(2026, 3, 10, 8, 0))
    db.session.add(alert)
    db.session.commit()
    return alert


def add_recipient(site_id, email, alert_types=None, active=True):
    recipient = EmailRecipient(site_id=site_id, name=email.split('@')[0], email=email,
                               alert_types=alert_types or ['all'], is_active=active)
    db.session.add(recipient)
    db.session.commit()
    return recipient


def test_send_email_posts_to_resend(app, monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers})
        return FakeResponse(200, {'id': 'abc123'})

    monkeypatch.setattr(requests, 'post', fake_post)
    result = send_email('ops@example.com', 'Subject', '<p>hi</p>')

    assert result == {'error': False, 'id': 'abc123'}
    assert calls[0]['url'] == app.config['RESEND_API_URL']
    assert calls[0]['json']['to'] == ['ops@example.com']
    assert calls[0]['headers']['Authorization'] == 'Bearer test-resend-key'


def test_send_email_reports_provider_errors(app, monkeypatch):
    monkeypatch.setattr(requests, 'post', lambda *a, **kw: FakeResponse(422, text='bad sender'))
    result = send_email('ops@example.com', 'Subject', '<p>hi</p>')
    assert result['error'] is True
    assert '422' in result['message']

    def timeout(*args, **kwargs):
        raise requests.exceptions.Timeout()

    monkeypatch.setattr(requests, 'post', timeout)
    assert send_email('ops@example.com', 'Subject', '')['message'] == 'Request timed out'


def test_missing_api_key(app, site):
    app.config['RESEND_API_KEY'] = None
    with pytest.raises(EmailNotConfigured):
        send_alert_email(make_alert(site.id))


def test_violation_text_and_subject(app, site):
    alert = make_alert(site.id)
    assert violation_text(alert, '') == 'below minimum (6.5)'
    alert.value = 9.2
    assert violation_text(alert, 'mg/L') == 'above maximum (8.5 mg/L)'
    assert alert_subject(alert, 'Main Plant') == '[CRITICAL] Main Plant: pH above maximum (8.5)'


def test_alert_email_logs_each_attempt(app, site, monkeypatch):
    add_recipient(site.id, 'good@example.com')
    add_recipient(site.id, 'bad@example.com')
    add_recipient(None, 'global@example.com')
    add_recipient(site.id, 'off@example.com', active=False)
    add_recipient(site.id, 'warnings@example.com', alert_types=['warning'])

    def fake_send(to, subject, html, sender=None):
        if to.startswith('bad'):
            return {'error': True, 'message': 'mailbox full'}
        return {'error': False, 'id': f'id-{to}'}

    monkeypatch.setattr('waterops.services.notifications.send_email', fake_send)
    result = send_alert_email(make_alert(site.id), ['Step one'])

    statuses = {r['email']: r['status'] for r in result['results']}
    assert statuses == {'good@example.com': 'sent', 'bad@example.com': 'failed',
                        'global@example.com': 'sent'}

    failed = EmailLog.query.filter_by(status='failed').one()
    assert failed.recipient_email == 'bad@example.com'
    assert failed.fail_reason == 'mailbox full'
    assert EmailLog.query.filter_by(status='sent').count() == 2


def test_alert_email_without_recipients(app, site, sent_emails):
    result = send_alert_email(make_alert(site.id))
    assert result['results'] == []
    assert sent_emails == []


def test_calibration_reminders(app, site, sent_emails):
    add_recipient(site.id, 'lead@example.com')
    overdue = create_schedule(site.id, 'DO sensor', 'do')
    overdue.next_due_at = datetime.utcnow() - timedelta(days=2)
    create_schedule(site.id, 'Flow meter', 'flow', interval_days=30)
    db.session.commit()

    result = send_calibration_reminders(site.id)
    assert result['sent'] == 1
    assert result['calibrations_due'] == 1
    assert sent_emails[0]['subject'] == f'⚙️ 1 Overdue Calibrations - {site.name}'
    assert 'DO sensor' in sent_emails[0]['html']
    assert 'Flow meter' not in sent_emails[0]['html']


def test_calibration_reminders_nothing_due(app, site, sent_emails):
    create_schedule(site.id, 'Flow meter', 'flow', interval_days=30)
    assert send_calibration_reminders(site.id)['sent'] == 0
    assert sent_emails == []


def make_incident(site_id, intensity, odour_type=None, status='open', occurred_at=None):
    incident = OdourIncident(site_id=site_id, lat=51.5, lng=-0.1, intensity=intensity,
                             odour_type=odour_type, status=status,
                             occurred_at=occurred_at or datetime(2026, 3, 9, 8, 0))
    db.session.add(incident)
    db.session.commit()
    return incident


def test_odour_alert_intensity_cutoff(app, site, sent_emails):
    add_recipient(site.id, 'lead@example.com')

    result = send_odour_alert(make_incident(site.id, 3, 'septic'))
    assert result['message'] == 'Intensity below threshold, no alert sent'
    assert sent_emails == []

    send_odour_alert(make_incident(site.id, 4, 'septic'))
    assert sent_emails[-1]['subject'] == f'[HIGH ODOUR] {site.name}: Septic - Strong Intensity'

    send_odour_alert(make_incident(site.id, 5))
    assert sent_emails[-1]['subject'] == f'[CRITICAL ODOUR] {site.name}: Unknown/Other - Very Strong Intensity'

    logs = EmailLog.query.order_by(EmailLog.id).all()
    assert [log.status for log in logs] == ['sent', 'sent']
    assert all(log.site_id == site.id for log in logs)


def test_low_intensity_odour_alert_needs_no_email_config(app, site):
    app.config['RESEND_API_KEY'] = None
    result = send_odour_alert(make_incident(site.id, 2))
    assert result['results'] == []

    with pytest.raises(EmailNotConfigured):
        send_odour_alert(make_incident(site.id, 6))


def test_odour_digest_stats():
    incidents = [
        OdourIncident(intensity=5, odour_type='sulfide', status='open'),
        OdourIncident(intensity=4, odour_type='sulfide', status='resolved'),
        OdourIncident(intensity=2, odour_type=None, status='closed'),
        OdourIncident(intensity=3, odour_type='septic', status='investigating'),
    ]
    stats = odour_digest_stats(incidents)

    assert stats['total'] == 4
    assert stats['resolved'] == 2
    assert stats['open'] == 1
    assert stats['investigating'] == 1
    assert [i.intensity for i in stats['high_intensity']] == [5, 4]
    assert stats['average_intensity'] == 3.5
    assert stats['by_type'][0] == ('sulfide', 2)
    assert dict(stats['by_type'])['unknown'] == 1
    assert stats['by_intensity'][5] == 1
    assert stats['by_intensity'][1] == 0


def test_odour_digest_groups_incidents_per_site(app, site, sent_emails):
    north = Site(name='North Plant')
    db.session.add(north)
    db.session.commit()
    add_recipient(site.id, 'lead@example.com')
    make_incident(site.id, 5, 'sulfide')
    make_incident(site.id, 2, 'septic', status='resolved')
    make_incident(site.id, 4, 'sulfide', occurred_at=datetime(2026, 2, 20, 8, 0))

    result = send_odour_digest(end=datetime(2026, 3, 10, 12, 0))

    assert result['results'] == [
        {'site': site.name, 'emails_sent': 1, 'incident_count': 2},
        {'site': 'North Plant', 'emails_sent': 0, 'incident_count': 0},
    ]
    assert len(sent_emails) == 1
    assert sent_emails[0]['subject'] == \
        f'Weekly Odour Digest - {site.name} (Tue, Mar 3, 2026 - Tue, Mar 10, 2026)'
    assert 'Sulfide (H₂S)' in sent_emails[0]['html']

    log = EmailLog.query.one()
    assert log.site_id == site.id
    assert log.status == 'sent'
