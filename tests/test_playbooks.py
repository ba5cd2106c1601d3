import pytest

from waterops.models import SitePlaybook
from waterops.services.playbooks import (
    generate_default_playbooks, get_default_playbook, get_playbook, all_playbooks,
    save_playbook, delete_playbook, initialize_defaults,
)


def test_defaults_follow_catalog_bounds():
    defaults = generate_default_playbooks()
    pairs = {(p['metric_id'], p['condition']) for p in defaults}
    assert ('ph', 'low') in pairs
    assert ('ph', 'high') in pairs
    # Blanket depth only has upper limits
    assert ('sludge_blanket_depth', 'low') not in pairs
    assert ('sludge_blanket_depth', 'high') in pairs
    assert all(p['id'] is None and p['is_default'] for p in defaults)
    assert all(p['steps'] for p in defaults)


def test_default_playbook_title():
    playbook = get_default_playbook('ph', 'low')
    assert playbook['title'] == 'pH Low Response'
    assert get_default_playbook('sludge_blanket_depth', 'low') is None


def test_site_override_keeps_step_order(app, site):
    steps = ['Third thing first', 'Then the first', 'Finally the second']
    saved = save_playbook(site.id, {
        'metric_id': 'do', 'condition': 'low', 'title': 'Low DO at Basin 2',
        'steps': steps, 'reference_links': ['Basin 2 SOP', '  '],
    })
    assert saved.id is not None

    playbook = get_playbook(site.id, 'do', 'low')
    assert playbook['steps'] == steps
    assert playbook['reference_links'] == ['Basin 2 SOP']
    assert playbook['is_default'] is False


def test_save_playbook_updates_existing_row(app, site):
    save_playbook(site.id, {'metric_id': 'ph', 'condition': 'high', 'title': 'First', 'steps': ['a']})
    save_playbook(site.id, {'metric_id': 'ph', 'condition': 'high', 'title': 'Second', 'steps': ['b']})
    assert SitePlaybook.query.filter_by(site_id=site.id).count() == 1
    assert get_playbook(site.id, 'ph', 'high')['title'] == 'Second'


@pytest.mark.parametrize('data', [
    {'metric_id': 'nope', 'condition': 'low', 'title': 'x'},
    {'metric_id': 'ph', 'condition': 'sideways', 'title': 'x'},
    {'metric_id': 'ph', 'condition': 'low', 'title': '  '},
    {'metric_id': 'ph', 'condition': 'low', 'title': 'x', 'steps': 'not a list'},
])
def test_save_playbook_validation(app, site, data):
    with pytest.raises(ValueError):
        save_playbook(site.id, data)


def test_inactive_override_falls_back_to_default(app, site):
    save_playbook(site.id, {'metric_id': 'ph', 'condition': 'low', 'title': 'Off', 'is_active': False})
    assert get_playbook(site.id, 'ph', 'low')['is_default'] is True


def test_all_playbooks_merges_overrides(app, site):
    save_playbook(site.id, {'metric_id': 'ph', 'condition': 'low', 'title': 'Custom pH'})
    merged = all_playbooks(site.id)
    assert len(merged) == len(generate_default_playbooks())
    ph_low = [p for p in merged if p['metric_id'] == 'ph' and p['condition'] == 'low']
    assert ph_low[0]['title'] == 'Custom pH'


def test_initialize_defaults_is_idempotent(app, site):
    save_playbook(site.id, {'metric_id': 'ph', 'condition': 'low', 'title': 'Custom pH'})
    created = initialize_defaults(site.id)
    assert created == len(generate_default_playbooks()) - 1
    assert initialize_defaults(site.id) == 0
    assert get_playbook(site.id, 'ph', 'low')['title'] == 'Custom pH'


def test_delete_playbook(app, site):
    playbook = save_playbook(site.id, {'metric_id': 'do', 'condition': 'high', 'title': 'x'})
    assert delete_playbook(site.id, playbook.id)
    assert not delete_playbook(site.id, playbook.id)
    assert get_playbook(site.id, 'do', 'high')['is_default'] is True
