"""
Email Notification Services

Alert emails, calibration reminders, missing-reading reminders and odour
alerts and digests sent through the Resend HTTP API. Every alert, odour
alert and digest email attempt is recorded in ``email_logs``.
"""

import logging
from collections import Counter, OrderedDict
from datetime import datetime, time, timedelta

import requests
from flask import current_app, render_template
from sqlalchemy import or_

from waterops.extensions import db
from waterops.models import EmailRecipient, EmailLog, OdourIncident, Reading, Site
from waterops.services.calibration import due_calibrations, METER_TYPES
from waterops.services.parameters import PARAMETERS, core_parameters

logger = logging.getLogger(__name__)

ODOUR_ALERT_MIN_INTENSITY = 4

ODOUR_TYPE_LABELS = {
    'septic': 'Septic',
    'sulfide': 'Sulfide (H₂S)',
    'ammonia': 'Ammonia',
    'chemical': 'Chemical',
    'organic_biological': 'Organic/Biological',
    'grease_fat': 'Grease/Fat',
    'earthy_musty': 'Earthy/Musty',
    'chlorine': 'Chlorine',
    'solvent': 'Solvent',
    'fuel_oil': 'Fuel/Oil',
    'unknown': 'Unknown/Other',
}

INTENSITY_LABELS = {
    0: 'No Odour',
    1: 'Very Weak',
    2: 'Weak',
    3: 'Moderate',
    4: 'Strong',
    5: 'Very Strong',
    6: 'Extremely Strong',
}


class EmailNotConfigured(RuntimeError):
    """Raised when no Resend API key is configured."""


def _api_key():
    key = current_app.config.get('RESEND_API_KEY')
    if not key:
        raise EmailNotConfigured('Email service not configured')
    return key


def send_email(to, subject, html, sender=None):
    """Send one email via Resend.

    Returns ``{'error': False, 'id': ...}`` or ``{'error': True, 'message': ...}``.
    """
    payload = {
        'from': sender or current_app.config['ALERT_EMAIL_FROM'],
        'to': [to],
        'subject': subject,
        'html': html,
    }
    headers = {'Authorization': f'Bearer {_api_key()}'}
    try:
        resp = requests.post(current_app.config['RESEND_API_URL'], json=payload,
                             headers=headers, timeout=10)
        if resp.status_code >= 400:
            return {'error': True, 'message': f'Resend error {resp.status_code}: {resp.text[:200]}'}
        return {'error': False, 'id': resp.json().get('id')}
    except requests.exceptions.Timeout:
        return {'error': True, 'message': 'Request timed out'}
    except requests.exceptions.RequestException as e:
        return {'error': True, 'message': str(e)}


def _site_recipients(site_id, alert_type=None):
    query = EmailRecipient.query.filter(EmailRecipient.is_active.is_(True))
    if site_id is not None:
        query = query.filter(or_(EmailRecipient.site_id == site_id,
                                 EmailRecipient.site_id.is_(None)))
    recipients = query.order_by(EmailRecipient.id).all()
    if alert_type is None:
        return recipients
    return [r for r in recipients if r.wants(alert_type)]


def _log_email(site_id, recipient, subject, html, outcome, alert_event_id=None):
    """Record one send attempt in email_logs and return its result entry."""
    log = EmailLog(
        site_id=site_id,
        alert_event_id=alert_event_id,
        recipient_email=recipient.email,
        recipient_name=recipient.name,
        subject=subject,
    )
    if outcome['error']:
        log.status = 'failed'
        log.fail_reason = outcome['message']
        result = {'email': recipient.email, 'status': 'failed', 'error': outcome['message']}
    else:
        log.status = 'sent'
        log.body = html
        log.provider_id = outcome['id']
        log.sent_at = datetime.utcnow()
        result = {'email': recipient.email, 'status': 'sent'}
    db.session.add(log)
    return result


def violation_text(alert, unit):
    suffix = f' {unit}' if unit else ''
    if alert.threshold_min is not None and alert.value < alert.threshold_min:
        return f'below minimum ({alert.threshold_min:g}{suffix})'
    if alert.threshold_max is not None and alert.value > alert.threshold_max:
        return f'above maximum ({alert.threshold_max:g}{suffix})'
    return 'outside alarm limits'


def alert_subject(alert, site_name):
    unit = PARAMETERS.get(alert.metric_id, {}).get('unit', '')
    label = 'CRITICAL' if alert.severity == 'critical' else 'WARNING'
    return f'[{label}] {site_name or "Site"}: {alert.metric_name} {violation_text(alert, unit)}'


def send_alert_email(alert, playbook_steps=None):
    """Email an alert to every active recipient subscribed to its severity."""
    _api_key()
    recipients = _site_recipients(alert.site_id, alert.severity)
    if not recipients:
        logger.info('No active recipients for alert %s', alert.id)
        return {'message': 'No active recipients configured', 'results': []}

    site = db.session.get(Site, alert.site_id) if alert.site_id else None
    site_name = site.name if site else None
    unit = PARAMETERS.get(alert.metric_id, {}).get('unit', '')
    subject = alert_subject(alert, site_name)

    results = []
    for recipient in recipients:
        html = render_template(
            'email/alert.html',
            alert=alert,
            recipient=recipient,
            site_name=site_name or 'Wastewater Plant',
            unit=unit,
            violation=violation_text(alert, unit),
            steps=playbook_steps or [],
        )
        outcome = send_email(recipient.email, subject, html, current_app.config['ALERT_EMAIL_FROM'])
        if outcome['error']:
            logger.error('Alert email to %s failed: %s', recipient.email, outcome['message'])
        results.append(_log_email(alert.site_id, recipient, subject, html, outcome, alert.id))
    db.session.commit()
    return {'success': True, 'results': results}


def send_calibration_reminders(site_id=None, days_ahead=1, now=None):
    """Mail due and overdue calibrations, grouped per site."""
    _api_key()
    now = now or datetime.utcnow()
    schedules = due_calibrations(site_id, days_ahead, now)
    if not schedules:
        logger.info('No calibrations due')
        return {'message': 'No calibrations due', 'sent': 0}

    by_site = OrderedDict()
    for schedule in schedules:
        by_site.setdefault(schedule.site_id, []).append(schedule)

    sent = 0
    errors = []
    for sid, items in by_site.items():
        site_name = items[0].site.name if items[0].site else 'Unknown Site'
        emails = [r.email for r in _site_recipients(sid) if 'all' in (r.alert_types or [])]
        for schedule in items:
            if schedule.assignee and schedule.assignee.email not in emails:
                emails.append(schedule.assignee.email)
        if not emails:
            logger.info('No reminder recipients for site %s', site_name)
            continue

        rows = []
        for schedule in items:
            if schedule.next_due_at < now:
                status = 'OVERDUE'
            elif schedule.next_due_at.date() == now.date():
                status = 'Due Today'
            else:
                status = 'Upcoming'
            rows.append({
                'meter_name': schedule.meter_name,
                'meter_type': METER_TYPES.get(schedule.meter_type, schedule.meter_type),
                'due': schedule.next_due_at.strftime('%Y-%m-%d %H:%M'),
                'status': status,
            })
        overdue = sum(1 for r in rows if r['status'] == 'OVERDUE')
        due_today = sum(1 for r in rows if r['status'] == 'Due Today')

        count_text = f'{overdue} Overdue' if overdue else f'{len(items)} Due'
        subject = f'⚙️ {count_text} Calibrations - {site_name}'
        html = render_template('email/calibration_reminder.html', site_name=site_name,
                               rows=rows, overdue=overdue, due_today=due_today)

        for email in emails:
            outcome = send_email(email, subject, html, current_app.config['REMINDER_EMAIL_FROM'])
            if outcome['error']:
                logger.error('Calibration reminder to %s failed: %s', email, outcome['message'])
                errors.append(f"{email}: {outcome['message']}")
            else:
                sent += 1

    logger.info('Sent %d calibration reminder emails', sent)
    result = {
        'message': f'Sent {sent} calibration reminder emails',
        'sent': sent,
        'calibrations_due': len(schedules),
    }
    if errors:
        result['errors'] = errors
    return result


def send_missing_readings_reminder(site_id=None, check_date=None):
    """Mail site recipients the core parameters with no reading on ``check_date``."""
    _api_key()
    check_date = check_date or datetime.utcnow().date()
    start = datetime.combine(check_date, time.min)
    end = start + timedelta(days=1)
    core = core_parameters()

    query = Site.query
    if site_id is not None:
        query = query.filter_by(id=site_id)
    sites = query.order_by(Site.id).all()
    if not sites:
        return {'message': 'No sites found', 'results': []}

    results = []
    for site in sites:
        recorded = {
            r.metric_id for r in Reading.query.filter(
                Reading.site_id == site.id,
                Reading.recorded_at >= start,
                Reading.recorded_at < end,
            ).all()
        }
        missing = [key for key in core if key not in recorded]
        logger.info('Site %s: %d recorded, %d missing', site.name, len(core) - len(missing), len(missing))
        if not missing:
            results.append({'site': site.name, 'status': 'complete', 'missing_count': 0})
            continue

        recipients = _site_recipients(site.id)
        missing_names = [PARAMETERS[key]['label'] for key in missing]
        if not recipients:
            results.append({'site': site.name, 'status': 'no_recipients',
                            'missing_count': len(missing), 'missing_metrics': missing_names})
            continue

        by_category = OrderedDict()
        for key in missing:
            by_category.setdefault(PARAMETERS[key]['category'], []).append(PARAMETERS[key])
        recorded_count = len(core) - len(missing)
        completion = round(recorded_count / len(core) * 100)
        formatted_date = check_date.strftime('%A, %B %d, %Y')
        subject = f'📋 Missing Readings Reminder - {site.name} ({formatted_date})'

        sent = 0
        for recipient in recipients:
            html = render_template('email/missing_readings.html', recipient=recipient,
                                   site_name=site.name, formatted_date=formatted_date,
                                   by_category=by_category, recorded=recorded_count,
                                   missing=len(missing), completion=completion)
            outcome = send_email(recipient.email, subject, html, current_app.config['REMINDER_EMAIL_FROM'])
            if outcome['error']:
                logger.error('Missing readings reminder to %s failed: %s', recipient.email, outcome['message'])
            else:
                sent += 1
        results.append({'site': site.name, 'status': 'sent', 'emails_sent': sent,
                        'missing_count': len(missing), 'missing_metrics': missing_names})
    return {'success': True, 'results': results}


def odour_type_label(odour_type):
    return ODOUR_TYPE_LABELS.get(odour_type or 'unknown', odour_type)


def intensity_label(intensity):
    return INTENSITY_LABELS.get(intensity, f'Level {intensity}')


def odour_alert_subject(incident, site_name):
    severity = 'CRITICAL' if incident.intensity >= 5 else 'HIGH'
    return (f'[{severity} ODOUR] {site_name or "Site"}: {odour_type_label(incident.odour_type)}'
            f' - {intensity_label(incident.intensity)} Intensity')


def send_odour_alert(incident):
    """Email a high-intensity odour incident to the site's active recipients.

    Incidents below ``ODOUR_ALERT_MIN_INTENSITY`` are not sent. Intensity 5
    and above is labelled CRITICAL, otherwise HIGH.
    """
    if (incident.intensity or 0) < ODOUR_ALERT_MIN_INTENSITY:
        return {'message': 'Intensity below threshold, no alert sent', 'results': []}
    _api_key()
    recipients = _site_recipients(incident.site_id)
    if not recipients:
        logger.info('No active recipients for odour incident %s', incident.id)
        return {'message': 'No active recipients configured', 'results': []}

    site = db.session.get(Site, incident.site_id)
    site_name = site.name if site else None
    subject = odour_alert_subject(incident, site_name)

    results = []
    for recipient in recipients:
        html = render_template(
            'email/odour_alert.html',
            incident=incident,
            recipient=recipient,
            site_name=site_name or 'Wastewater Plant',
            critical=incident.intensity >= 5,
            odour_type=odour_type_label(incident.odour_type),
            intensity_text=intensity_label(incident.intensity),
        )
        outcome = send_email(recipient.email, subject, html, current_app.config['ALERT_EMAIL_FROM'])
        if outcome['error']:
            logger.error('Odour alert to %s failed: %s', recipient.email, outcome['message'])
        results.append(_log_email(incident.site_id, recipient, subject, html, outcome))
    db.session.commit()
    return {'success': True, 'results': results}


def odour_digest_stats(incidents):
    """Counts by status, type and intensity for a list of incidents."""
    rated = [i.intensity for i in incidents if i.intensity]
    high = [i for i in incidents if (i.intensity or 0) >= ODOUR_ALERT_MIN_INTENSITY]
    statuses = Counter(i.status for i in incidents)
    by_type = Counter(i.odour_type or 'unknown' for i in incidents)
    by_intensity = OrderedDict((level, 0) for level in range(max(INTENSITY_LABELS), 0, -1))
    for level in rated:
        by_intensity[level] = by_intensity.get(level, 0) + 1

    return {
        'total': len(incidents),
        'resolved': statuses['resolved'] + statuses['closed'],
        'open': statuses['open'],
        'investigating': statuses['investigating'],
        'high_intensity': high,
        'average_intensity': sum(rated) / len(rated) if rated else 0,
        'by_type': by_type.most_common(),
        'by_intensity': by_intensity,
    }


def _digest_date(value):
    return f'{value:%a, %b} {value.day}, {value.year}'


def send_odour_digest(site_id=None, days=7, end=None):
    """Mail each site's recipients a summary of odour incidents over the last ``days``."""
    _api_key()
    end = end or datetime.utcnow()
    start = end - timedelta(days=days)

    query = Site.query
    if site_id is not None:
        query = query.filter_by(id=site_id)
    sites = query.order_by(Site.id).all()
    if not sites:
        return {'message': 'No sites found', 'results': []}

    period = f'{_digest_date(start)} - {_digest_date(end)}'
    results = []
    for site in sites:
        incidents = OdourIncident.query.filter(
            OdourIncident.site_id == site.id,
            OdourIncident.occurred_at >= start,
            OdourIncident.occurred_at <= end,
        ).order_by(OdourIncident.occurred_at.desc()).all()
        if not incidents:
            logger.info('No odour incidents for %s in digest period', site.name)
            results.append({'site': site.name, 'emails_sent': 0, 'incident_count': 0})
            continue

        recipients = _site_recipients(site.id)
        if not recipients:
            logger.info('No active recipients for %s', site.name)
            results.append({'site': site.name, 'emails_sent': 0, 'incident_count': len(incidents)})
            continue

        stats = odour_digest_stats(incidents)
        subject = f'Weekly Odour Digest - {site.name} ({period})'
        html = render_template('email/odour_digest.html', site=site, period=period, stats=stats,
                               type_label=odour_type_label, intensity_label=intensity_label)

        sent = 0
        for recipient in recipients:
            outcome = send_email(recipient.email, subject, html, current_app.config['REMINDER_EMAIL_FROM'])
            if outcome['error']:
                logger.error('Odour digest to %s failed: %s', recipient.email, outcome['message'])
            else:
                sent += 1
            _log_email(site.id, recipient, subject, html, outcome)
        db.session.commit()
        results.append({'site': site.name, 'emails_sent': sent, 'incident_count': len(incidents)})
    return {'success': True, 'results': results}
