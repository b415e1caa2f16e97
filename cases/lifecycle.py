"""
Case statuses, their display labels and the six-step progress indicator.

STATUS_TABLE is the single ordered source for all of it: the model field
choices, the validation of client updates and the progress steps are all
derived from it.
"""


# (value, label, stage) in lifecycle order. Stage is None for the
# absorbing states that sit outside the progress indicator.
STATUS_TABLE = [
    ('DRAFT', 'Draft', 1),
    ('TRADEMARK_REGISTERED', 'Trademark registered', 2),
    ('PRELIMINARY_RESEARCH_IN_PROGRESS', 'Preliminary research in progress', 2),
    ('RESEARCH_RESULT_SHARED', 'Research result shared', 2),
    ('PREPARING_APPLICATION', 'Preparing application', 3),
    ('APPLICATION_CONFIRMED', 'Application confirmed', 3),
    ('APPLICATION_SUBMITTED', 'Application submitted', 3),
    ('UNDER_EXAMINATION', 'Under examination', 4),
    ('OA_RECEIVED', 'Office action received', 5),
    ('RESPONDING_TO_OA', 'Responding to office action', 5),
    ('FINAL_RESULT_RECEIVED', 'Final result received', 6),
    ('PAYING_REGISTRATION_FEE', 'Paying registration fee', 6),
    ('REGISTRATION_COMPLETED', 'Registration completed', 6),
    ('AWAITING_RENEWAL', 'Awaiting renewal', 6),
    ('IN_DISPUTE', 'In dispute', None),
    ('REJECTED', 'Rejected', None),
    ('ABANDONED', 'Abandoned', None),
]

STATUS_CHOICES = [(value, label) for value, label, _ in STATUS_TABLE]

STATUS_VALUES = [value for value, _, _ in STATUS_TABLE]
STATUS_LABELS = {value: label for value, label, _ in STATUS_TABLE}
STATUS_STAGES = {value: stage for value, _, stage in STATUS_TABLE}

TERMINAL_STATUSES = frozenset({
    'REGISTRATION_COMPLETED',
    'AWAITING_RENEWAL',
    'IN_DISPUTE',
    'REJECTED',
    'ABANDONED',
})

# Reaching one of these completes the whole indicator, last step included.
COMPLETING_STATUSES = frozenset({'REGISTRATION_COMPLETED', 'AWAITING_RENEWAL'})

PROGRESS_STAGES = [
    (1, 'Draft'),
    (2, 'New trademark / Preliminary research'),
    (3, 'Application preparation / Filing'),
    (4, 'Under examination'),
    (5, 'Office action response'),
    (6, 'Registration preparation / Registered'),
]


def is_valid_status(value):
    return isinstance(value, str) and value in STATUS_LABELS


def is_terminal(status):
    return status in TERMINAL_STATUSES


def status_label(status):
    return STATUS_LABELS.get(status, status)


def stage_for(status):
    """Returns the 1-based progress stage of a status, or None."""
    return STATUS_STAGES.get(status)


def progress_steps(status):
    """
    Returns the six progress steps for a case in the given status.

    Each step is {"id", "label", "status"} where status is one of
    "completed", "current" or "pending".
    """
    current_stage = stage_for(status)
    all_done = status in COMPLETING_STATUSES

    steps = []
    for stage_id, label in PROGRESS_STAGES:
        if current_stage is None:
            step_status = 'pending'
        elif all_done or stage_id < current_stage:
            step_status = 'completed'
        elif stage_id == current_stage:
            step_status = 'current'
        else:
            step_status = 'pending'
        steps.append({'id': stage_id, 'label': label, 'status': step_status})
    return steps


def status_table():
    """The lifecycle as plain data, for clients that render their own labels."""
    return {
        'statuses': [
            {'value': value, 'label': label, 'stage': stage, 'terminal': value in TERMINAL_STATUSES}
            for value, label, stage in STATUS_TABLE
        ],
        'stages': [{'id': stage_id, 'label': label} for stage_id, label in PROGRESS_STAGES],
    }
