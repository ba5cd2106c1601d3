"""
Process Parameter Catalog

Static definitions for every parameter an operator can log: label, unit,
precision, category, target range, watch/alarm bands and default actions.
"""

CATEGORIES = ['Core', 'Process', 'Solids', 'Nutrients', 'Softwater']

PARAMETERS = {
    'ph': {
        'label': 'pH', 'unit': '', 'decimals': 2, 'category': 'Core',
        'default_min': 6.5, 'default_max': 8.5,
        'watch': {'min': 6.5, 'max': 8.5},
        'alarm': {'min': 6.0, 'max': 9.0},
        'actions': {
            'watch': ['Verify sensor calibration', 'Check alkalinity and chemical dosing'],
            'alarm': ['Check for industrial discharge', 'Adjust chemical dosing immediately',
                      'Notify supervisor'],
        },
    },
    'do': {
        'label': 'DO', 'unit': 'mg/L', 'decimals': 1, 'category': 'Core',
        'default_min': 1.5, 'default_max': 3.0,
        'watch': {'min': 1.5, 'max': 3.0},
        'alarm': {'min': 1.0, 'max': 6.0},
        'actions': {
            'watch': ['Check blower output and setpoints', 'Inspect diffusers'],
            'alarm': ['Start standby blower', 'Check for power or air system faults',
                      'Notify supervisor'],
        },
    },
    'orp': {
        'label': 'ORP', 'unit': 'mV', 'decimals': 0, 'category': 'Core',
        'default_min': -50, 'default_max': 200,
        'watch': {'min': -50, 'max': 200},
        'alarm': {'min': -150, 'max': 300},
        'actions': {
            'watch': ['Review aeration pattern', 'Verify sensor calibration'],
            'alarm': ['Check for septic conditions', 'Test for sulfide presence'],
        },
    },
    'mlss': {
        'label': 'MLSS', 'unit': 'mg/L', 'decimals': 0, 'category': 'Core',
        'default_min': 2000, 'default_max': 4000,
        'watch': {'min': 2000, 'max': 4000},
        'alarm': {'min': 1500, 'max': 5000},
        'actions': {
            'watch': ['Review wasting rate', 'Check RAS pumping'],
            'alarm': ['Adjust wasting immediately', 'Inspect clarifier for solids loss'],
        },
    },
    'temp_c': {
        'label': 'Temperature', 'unit': '°C', 'decimals': 1, 'category': 'Core',
        'default_min': 12, 'default_max': 30,
        'watch': {'min': 12, 'max': 30},
        'alarm': {'min': 8, 'max': 35},
        'actions': {
            'watch': ['Monitor nitrification performance'],
            'alarm': ['Check for hot or cold discharges', 'Adjust SRT targets'],
        },
    },
    'svi': {
        'label': 'SVI', 'unit': 'mL/g', 'decimals': 0, 'category': 'Process',
        'default_min': 50, 'default_max': 150,
        'watch': {'min': 50, 'max': 150},
        'alarm': {'max': 200},
        'actions': {
            'watch': ['Run microscopic exam for filaments', 'Check DO distribution'],
            'alarm': ['Investigate filamentous bulking', 'Consider RAS chlorination'],
        },
    },
    'sludge_blanket_depth': {
        'label': 'Sludge Blanket Depth', 'unit': 'm', 'decimals': 2, 'category': 'Process',
        'default_min': 0.3, 'default_max': 1.0,
        'watch': {'max': 1.0},
        'alarm': {'max': 1.5},
        'actions': {
            'watch': ['Increase RAS rate', 'Monitor clarifier every shift'],
            'alarm': ['Increase RAS and wasting', 'Inspect scraper mechanism'],
        },
    },
    'tss': {
        'label': 'TSS', 'unit': 'mg/L', 'decimals': 0, 'category': 'Solids',
        'default_min': 0, 'default_max': 30,
        'watch': {'max': 30},
        'alarm': {'max': 50},
        'actions': {
            'watch': ['Check clarifier performance', 'Inspect weirs and baffles'],
            'alarm': ['Check for solids washout', 'Notify supervisor of permit risk'],
        },
    },
    'vss': {
        'label': 'VSS', 'unit': 'mg/L', 'decimals': 0, 'category': 'Solids',
        'default_min': 1400, 'default_max': 3200,
        'watch': {'min': 1400, 'max': 3200},
        'alarm': {'min': 1000, 'max': 4000},
        'actions': {
            'watch': ['Calculate VSS/TSS ratio'],
            'alarm': ['Review sludge age', 'Check for inert solids ingress'],
        },
    },
    'turbidity': {
        'label': 'Turbidity', 'unit': 'NTU', 'decimals': 1, 'category': 'Solids',
        'default_min': 0, 'default_max': 5,
        'watch': {'max': 5},
        'alarm': {'max': 10},
        'actions': {
            'watch': ['Cross-check with TSS', 'Inspect clarifier surface'],
            'alarm': ['Check for solids breakthrough', 'Verify no hydraulic surges'],
        },
    },
    'settleable_solids': {
        'label': 'Settleable Solids', 'unit': 'mL/L', 'decimals': 1, 'category': 'Solids',
        'default_min': 0, 'default_max': 0.5,
        'watch': {'max': 0.5},
        'alarm': {'max': 1.0},
        'actions': {
            'watch': ['Check clarifier loading'],
            'alarm': ['Adjust RAS/WAS rates', 'Inspect mechanical components'],
        },
    },
    'ammonia_tan': {
        'label': 'Ammonia (TAN)', 'unit': 'mg/L', 'decimals': 2, 'category': 'Nutrients',
        'default_min': 0, 'default_max': 2,
        'watch': {'max': 2},
        'alarm': {'max': 5},
        'actions': {
            'watch': ['Check DO and alkalinity', 'Review SRT'],
            'alarm': ['Increase aeration', 'Check for nitrifier toxicity',
                      'Notify supervisor'],
        },
    },
    'nitrate_no3n': {
        'label': 'Nitrate (NO3-N)', 'unit': 'mg/L', 'decimals': 1, 'category': 'Nutrients',
        'default_min': 0, 'default_max': 10,
        'watch': {'max': 10},
        'alarm': {'max': 15},
        'actions': {
            'watch': ['Review anoxic zone performance'],
            'alarm': ['Increase internal recycle', 'Add supplemental carbon'],
        },
    },
    'nitrite_no2n': {
        'label': 'Nitrite (NO2-N)', 'unit': 'mg/L', 'decimals': 2, 'category': 'Nutrients',
        'default_min': 0, 'default_max': 0.5,
        'watch': {'max': 0.5},
        'alarm': {'max': 1.0},
        'actions': {
            'watch': ['Check DO levels'],
            'alarm': ['Check for nitrifier stress', 'Test pH and alkalinity'],
        },
    },
    'alkalinity': {
        'label': 'Alkalinity', 'unit': 'mg/L', 'decimals': 0, 'category': 'Nutrients',
        'default_min': 100, 'default_max': 300,
        'watch': {'min': 100, 'max': 300},
        'alarm': {'min': 50, 'max': 400},
        'actions': {
            'watch': ['Review alkalinity dosing'],
            'alarm': ['Adjust chemical feed', 'Monitor pH closely'],
        },
    },
    'conductivity': {
        'label': 'Conductivity', 'unit': 'µS/cm', 'decimals': 0, 'category': 'Softwater',
        'default_min': 200, 'default_max': 1500,
        'watch': {'max': 1500},
        'alarm': {'max': 3000},
        'actions': {
            'watch': ['Check for trade waste discharge'],
            'alarm': ['Investigate brine or CIP dumps', 'Test for nitrifier toxicity'],
        },
    },
}

DEFAULT_PARAMETER_ORDER = list(PARAMETERS.keys())


def is_known_parameter(key):
    return key in PARAMETERS


def get_parameter(key):
    """Return the catalog entry for a parameter, or None for unknown keys."""
    param = PARAMETERS.get(key)
    if param is None:
        return None
    return dict(param, key=key)


def parameters_by_category():
    """Group parameter keys by category, keeping catalog order."""
    grouped = {category: [] for category in CATEGORIES}
    for key, param in PARAMETERS.items():
        grouped[param['category']].append(key)
    return grouped


def default_thresholds():
    """Watch band per parameter, used when a site has no threshold saved.

    Open sides of the band are None.
    """
    return {
        key: {'min': param['watch'].get('min'), 'max': param['watch'].get('max')}
        for key, param in PARAMETERS.items()
    }


def core_parameters():
    """Parameters expected every day: Core and Process categories plus ammonia."""
    return [
        key for key, param in PARAMETERS.items()
        if param['category'] in ('Core', 'Process') or key == 'ammonia_tan'
    ]
