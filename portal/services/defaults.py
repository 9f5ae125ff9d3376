"""Built-in catalog served until an administrator saves the first forest."""
from __future__ import annotations

import copy

_STAMP = '2024-01-01T00:00:00+00:00'


def _node(id, name, type, base_price, *, parent_id, sort_order, description=None,
          is_required=True, children=()):
    node = {
        'id': id,
        'name': name,
        'type': type,
        'basePrice': base_price,
        'isRequired': is_required,
        'isRecurring': True,
        'parentId': parent_id,
        'sortOrder': sort_order,
        'children': list(children),
        'createdAt': _STAMP,
        'updatedAt': _STAMP,
    }
    if description is not None:
        node['description'] = description
    return node


DEFAULT_PRICING = [
    _node('svc-home-care', 'Home Care Service', 'service', 150, parent_id=None, sort_order=0,
          description='Professional care delivered at home by trained caregivers',
          children=[
              _node('feat-daily-checkins', 'Daily Check-ins', 'feature', 0,
                    parent_id='svc-home-care', sort_order=0,
                    description='A caregiver visits every day to review wellbeing',
                    children=[
                        _node('addon-vitals', 'Vital signs monitoring', 'addon', 15,
                              parent_id='feat-daily-checkins', sort_order=0, is_required=False),
                        _node('addon-med-reminders', 'Medication reminders', 'addon', 10,
                              parent_id='feat-daily-checkins', sort_order=1, is_required=False),
                    ]),
              _node('feat-wound-care', 'Wound care management', 'feature', 30,
                    parent_id='svc-home-care', sort_order=1, is_required=False,
                    description='Professional wound care and dressing changes'),
          ]),
    _node('svc-ahenefie', 'Ahenefie', 'service', 300, parent_id=None, sort_order=1,
          description='24/7 live-in nursing care',
          children=[
              _node('feat-live-in-nursing', '24/7 live-in nursing care', 'feature', 0,
                    parent_id='svc-ahenefie', sort_order=0,
                    description='Round-the-clock professional nursing care',
                    children=[
                        _node('addon-emergency', 'Emergency response & ambulance', 'addon', 50,
                              parent_id='feat-live-in-nursing', sort_order=0, is_required=False),
                    ]),
              _node('feat-medication', 'Medication management', 'feature', 25,
                    parent_id='svc-ahenefie', sort_order=1, is_required=False,
                    description='Professional medication administration and monitoring'),
          ]),
    _node('svc-adamfo-pa', 'Adamfo Pa', 'service', 80, parent_id=None, sort_order=2,
          description='Daily professional visits for clients living independently',
          children=[
              _node('feat-daily-visits', 'Daily professional visits', 'feature', 0,
                    parent_id='svc-adamfo-pa', sort_order=0,
                    children=[
                        _node('addon-health-reports', 'Health monitoring & reports', 'addon', 20,
                              parent_id='feat-daily-visits', sort_order=0, is_required=False),
                    ]),
          ]),
    _node('svc-event-medical', 'Event Medical Coverage', 'service', 500, parent_id=None, sort_order=3,
          description='On-site medical teams for public and private events'),
]


def default_pricing() -> list:
    """A fresh copy callers may mutate."""
    return copy.deepcopy(DEFAULT_PRICING)
