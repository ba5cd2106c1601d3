"""
Playbook Services

Default remediation playbooks generated from the parameter catalog, and
site-level overrides stored in ``site_playbooks``.
"""

import logging

from sqlalchemy.exc import IntegrityError

from waterops.extensions import db
from waterops.models import SitePlaybook
from waterops.services.parameters import PARAMETERS

logger = logging.getLogger(__name__)

CONDITIONS = ('low', 'high')

LOW_STEPS = {
    'ph': [
        'Check nitrification demand and influent pH',
        'Review caustic/alkalinity dosing rates',
        'Test for acidic industrial discharge',
        'Check CO2 stripping in aeration',
        'Document pH trend and notify supervisor',
    ],
    'do': [
        'Increase blower output or add standby aerator',
        'Check for power trips or air system faults',
        'Inspect diffuser condition for fouling',
        'Review MLSS levels - high solids reduce DO',
        'Monitor for signs of biological stress',
    ],
    'orp': [
        'Check for septic influent conditions',
        'Review aeration pattern and mixing',
        'Test for H2S/sulfide presence',
        'Increase recirculation if available',
        'Document conditions and notify supervisor',
    ],
    'mlss': [
        'Reduce or stop wasting immediately',
        'Check clarifier for solids washout',
        'Inspect RAS pumping rates',
        'Review influent loading trends',
        'Consider seeding if major loss occurred',
    ],
    'vss': [
        'Calculate VSS/TSS ratio',
        'Check for high inert solids ingress',
        'Review primary clarifier performance',
        'Inspect for grit system bypass',
    ],
    'svi': [
        'Review sludge age and wasting rate',
        'Check for pin floc formation',
        'Verify MLSS measurement accuracy',
        'Reduce wasting to increase SRT',
    ],
    'alkalinity': [
        'Check alkalinity dosing system',
        'Calculate nitrification demand',
        'Review caustic/lime inventory',
        'Risk of pH crash - monitor closely',
    ],
    'temp_c': [
        'Check for equipment heating options',
        'Expect reduced nitrification rates',
        'Adjust SRT targets for cold conditions',
        'Monitor ammonia breakthrough',
    ],
}

HIGH_STEPS = {
    'ph': [
        'Check caustic/lime dosing rates - reduce if excessive',
        'Test for industrial alkaline discharge',
        'Review any chemical cleaning activities',
        'Verify sensor calibration accuracy',
        'Document and notify supervisor',
    ],
    'do': [
        'Reduce aeration to save energy costs',
        'Verify adequate mixing is maintained',
        'Check for false high readings (bubble interference)',
        'Excess DO wastes energy - optimize',
    ],
    'orp': [
        'Check for chemical oxidant residuals',
        'Verify sensor calibration',
        'Review any disinfection activities',
        'Document unusual conditions',
    ],
    'mlss': [
        'Increase wasting rate immediately',
        'Check oxygen transfer capacity',
        'Verify clarifier can handle solids loading',
        'Risk of clarifier overload - monitor blanket',
    ],
    'tss': [
        'Check clarifier blanket depth',
        'Adjust RAS rates to remove solids',
        'Inspect weirs and scum baffles',
        'Look for rising sludge or short-circuiting',
        'Consider polymer addition if permitted',
    ],
    'vss': [
        'Check for FOG/grease ingress',
        'Review filament analysis results',
        'Check for organic shock loading',
        'Verify F/M ratio calculations',
    ],
    'turbidity': [
        'Immediate solids breakthrough risk',
        'Inspect clarifier weirs and baffles',
        'Check for rising sludge',
        'Verify no hydraulic surges',
        'Cross-check with TSS',
    ],
    'svi': [
        'Investigate filamentous bulking',
        'Check DO distribution - low DO zones?',
        'Review nutrient balance (N:P)',
        'Check for FOG/grease issues',
        'Consider selector zone operation',
    ],
    'ammonia_tan': [
        'Increase aeration capacity',
        'Verify alkalinity is adequate',
        'Check for nitrifier toxicity',
        'Review SRT and MLSS targets',
        'Cold weather: adjust expectations',
    ],
    'nitrate_no3n': [
        'Increase anoxic zone contact time',
        'Add supplemental carbon if available',
        'Increase internal recycle rate',
        'Check denitrification zones',
    ],
    'nitrite_no2n': [
        'IMMEDIATE: Check for nitrifier stress',
        'Verify DO levels are adequate',
        'Test pH and alkalinity',
        'Check for toxicity event',
        'Increase aeration in affected zones',
    ],
    'alkalinity': [
        'Reduce alkalinity dosing',
        'Check for lime/caustic overdosing',
        'Verify dosing pump calibration',
    ],
    'conductivity': [
        'Investigate for industrial brine discharge',
        'Check for CIP/cleaning chemical dumps',
        'Test for nitrifier toxicity symptoms',
        'Document source if identified',
    ],
    'temp_c': [
        'Check for hot industrial discharge',
        'Verify cooling systems operating',
        'High temps can stress biology',
        'Monitor DO (warm water holds less oxygen)',
    ],
    'settleable_solids': [
        'High solids carryover risk',
        'Check clarifier for shock loading',
        'Adjust RAS/WAS rates',
        'Inspect mechanical components',
    ],
    'sludge_blanket_depth': [
        'IMMEDIATE solids loss risk',
        'Increase RAS pumping rate',
        'Increase wasting rate',
        'Inspect scraper and mechanism',
        'Check for denitrification (rising sludge)',
    ],
}

REFERENCE_LINKS = {
    'ph': ['EPA pH Guidelines', 'Process Control Manual Ch. 5'],
    'do': ['WEF MOP 11 - Aeration', 'Energy Optimization Guide'],
    'orp': ['WEF ORP Guidelines', 'Anaerobic/Anoxic Monitoring'],
    'mlss': ['WEF Activated Sludge Manual', 'MLSS Management Best Practices'],
    'tss': ['EPA Permit Compliance', 'Clarifier Operation Guide'],
    'vss': ['Sludge Analysis Handbook', 'Activated Sludge Diagnostics'],
    'turbidity': ['EPA Turbidity Method', 'Effluent Quality Monitoring'],
    'svi': ['WEF Bulking Control', 'Filament Identification Guide'],
    'ammonia_tan': ['EPA Nutrient Guidelines', 'Nitrification Optimization'],
    'nitrate_no3n': ['BNR Process Manual', 'Denitrification Guidelines'],
    'nitrite_no2n': ['Nitrification Troubleshooting', 'Process Upset Response'],
    'alkalinity': ['Alkalinity for Nitrification', 'Chemical Feed Calculations'],
    'conductivity': ['Conductivity Monitoring', 'Trade Waste Management'],
    'temp_c': ['Temperature Effects Guide', 'Seasonal Process Adjustments'],
    'settleable_solids': ['Imhoff Cone Testing', 'Clarifier Performance'],
    'sludge_blanket_depth': ['Blanket Depth Management', 'Clarifier Troubleshooting'],
}


def _catalog_actions(param):
    actions = []
    for severity in ('watch', 'alarm'):
        for action in param['actions'].get(severity, []):
            if action not in actions:
                actions.append(action)
    return actions


def _has_bound(param, side):
    return any((param.get(band) or {}).get(side) is not None for band in ('watch', 'alarm'))


def generate_default_playbooks():
    """One low playbook per parameter with a lower bound, one high per upper bound."""
    playbooks = []
    for key, param in PARAMETERS.items():
        for condition, side, steps in (('low', 'min', LOW_STEPS), ('high', 'max', HIGH_STEPS)):
            if not _has_bound(param, side):
                continue
            playbooks.append({
                'id': None,
                'metric_id': key,
                'condition': condition,
                'title': f"{param['label']} {condition.capitalize()} Response",
                'steps': list(steps.get(key) or _catalog_actions(param)),
                'reference_links': list(REFERENCE_LINKS.get(key, ['General Operations Manual'])),
                'is_active': True,
                'is_default': True,
            })
    return playbooks


def get_default_playbook(metric_id, condition):
    for playbook in generate_default_playbooks():
        if playbook['metric_id'] == metric_id and playbook['condition'] == condition:
            return playbook
    return None


def get_playbook(site_id, metric_id, condition):
    """Active site playbook for the breach, falling back to the default."""
    custom = SitePlaybook.query.filter_by(
        site_id=site_id, metric_id=metric_id, condition=condition, is_active=True
    ).first()
    if custom:
        return custom.to_dict()
    return get_default_playbook(metric_id, condition)


def all_playbooks(site_id):
    """Defaults with any site overrides merged over them."""
    custom = {
        (p.metric_id, p.condition): p.to_dict()
        for p in SitePlaybook.query.filter_by(site_id=site_id).all()
    }
    merged = []
    for default in generate_default_playbooks():
        merged.append(custom.pop((default['metric_id'], default['condition']), default))
    merged.extend(custom.values())
    return merged


def _clean_list(values, field):
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValueError(f'{field} must be a list')
    return [str(v).strip() for v in values if str(v).strip()]


def save_playbook(site_id, data):
    """Insert or update the playbook for (site, metric, condition)."""
    metric_id = data.get('metric_id')
    condition = data.get('condition')
    if metric_id not in PARAMETERS:
        raise ValueError(f'Unknown parameter: {metric_id}')
    if condition not in CONDITIONS:
        raise ValueError('condition must be low or high')
    title = (data.get('title') or '').strip()
    if not title:
        raise ValueError('title is required')

    playbook = SitePlaybook.query.filter_by(
        site_id=site_id, metric_id=metric_id, condition=condition
    ).first()
    if playbook is None:
        playbook = SitePlaybook(site_id=site_id, metric_id=metric_id, condition=condition)
        db.session.add(playbook)

    playbook.title = title
    playbook.steps = _clean_list(data.get('steps'), 'steps')
    playbook.reference_links = _clean_list(data.get('reference_links'), 'reference_links')
    playbook.is_active = data.get('is_active', True)
    db.session.commit()
    return playbook


def delete_playbook(site_id, playbook_id):
    playbook = SitePlaybook.query.filter_by(id=playbook_id, site_id=site_id).first()
    if playbook is None:
        return False
    db.session.delete(playbook)
    db.session.commit()
    return True


def initialize_defaults(site_id):
    """Copy every default playbook into the site, leaving existing rows alone."""
    existing = {
        (p.metric_id, p.condition)
        for p in SitePlaybook.query.filter_by(site_id=site_id).all()
    }
    created = 0
    for default in generate_default_playbooks():
        if (default['metric_id'], default['condition']) in existing:
            continue
        db.session.add(SitePlaybook(
            site_id=site_id,
            metric_id=default['metric_id'],
            condition=default['condition'],
            title=default['title'],
            steps=default['steps'],
            reference_links=default['reference_links'],
            is_active=True,
        ))
        created += 1
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning('Default playbooks for site %s were initialised concurrently', site_id)
        return 0
    logger.info('Initialised %d default playbooks for site %s', created, site_id)
    return created
