"""
Role -> ordered step table for onboarding.

Each role is described by a RoleFlow: an ordered list of StepSpecs, each naming
the fields it requires and the rule every field must satisfy. The state machine
and the validation gate only ever read these tables, so a new role (or a
synthetic one in a test) is just another RoleFlow.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

ROLE_STUDENT = 'student'
ROLE_INSTRUCTOR = 'instructor'
ROLE_INSTITUTION = 'institution'

GENDER_OPTIONS = ('male', 'female', 'other', 'prefer_not_to_say')

MODE_OF_STUDY_OPTIONS = ('Full-time', 'Part-time')

INSTITUTION_TYPE_OPTIONS = (
    "University",
    "College",
    "Technical Institute",
    "Vocational School",
    "Online Academy",
    "Training Center",
    "Corporate Training",
    "Other",
)

# (upper bound stored on the session, label shown to the user)
STUDENT_COUNT_BUCKETS = (
    (50, "1-50 students"),
    (200, "50-200 students"),
    (500, "200-500 students"),
    (1000, "500-1,000 students"),
    (5000, "1,000-5,000 students"),
    (10000, "5,000+ students"),
)


_INTEGER_TEXT = re.compile(r"-?[0-9]+")


def _current_year():
    return date.today().year


def _bound(value):
    return value() if callable(value) else value


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


class Rule:
    """A constraint on one field. check() returns an error message or ''."""
    multi = False

    def __init__(self, message):
        self.message = message

    def check(self, value):
        raise NotImplementedError

    def coerce(self, value):
        return value


class Text(Rule):
    def __init__(self, message, min_length=1, max_length=None, max_message=None):
        super().__init__(message)
        self.min_length = min_length
        self.max_length = max_length
        self.max_message = max_message or message

    def check(self, value):
        if _is_blank(value) or not isinstance(value, str):
            return self.message
        text = value.strip()
        if len(text) < self.min_length:
            return self.message
        if self.max_length is not None and len(text) > self.max_length:
            return self.max_message
        return ''


class Choice(Rule):
    def __init__(self, message, options):
        super().__init__(message)
        self.options = tuple(options)

    def check(self, value):
        return '' if value in self.options else self.message


class Integer(Rule):
    """Integer within [minimum, maximum]; bounds may be callables (e.g. the current year)."""

    def __init__(self, message, minimum=None, maximum=None):
        super().__init__(message)
        self.minimum = minimum
        self.maximum = maximum

    def coerce(self, value):
        if isinstance(value, str) and _INTEGER_TEXT.fullmatch(value.strip()):
            return int(value.strip())
        return value

    def check(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            return self.message
        minimum, maximum = _bound(self.minimum), _bound(self.maximum)
        if minimum is not None and value < minimum:
            return self.message
        if maximum is not None and value > maximum:
            return self.message
        return ''


class MultiSelect(Rule):
    """A list of selected options; toggled one value at a time."""
    multi = True

    def __init__(self, message, min_items=1, options=None):
        super().__init__(message)
        self.min_items = min_items
        self.options = tuple(options) if options else None

    def check(self, value):
        if not isinstance(value, (list, tuple)) or len(value) < self.min_items:
            return self.message
        if self.options and any(item not in self.options for item in value):
            return "Please choose from the listed options"
        return ''


class Range(Integer):
    """An integer picked from labelled buckets; the bucket's upper bound is stored."""

    def __init__(self, message, buckets):
        super().__init__(message, minimum=1)
        self.buckets = tuple(buckets)

    def upper_bound(self, bucket):
        for upper, label in self.buckets:
            if bucket == label or self.coerce(bucket) == upper:
                return upper
        return None


# A cross-field check receives the accumulated fields and returns (field, message) or None.
CrossCheck = Callable[[dict], Optional[Tuple[str, str]]]


@dataclass(frozen=True)
class StepSpec:
    title: str
    rules: Dict[str, Rule]
    checks: Sequence[CrossCheck] = ()

    @property
    def required_fields(self):
        return tuple(self.rules)


@dataclass(frozen=True)
class RoleFlow:
    role: str
    steps: List[StepSpec]
    defaults: Dict[str, object] = field(default_factory=dict)

    @property
    def total_steps(self):
        return len(self.steps)

    def step(self, step_index):
        """1-based lookup; None when out of range."""
        if 1 <= step_index <= len(self.steps):
            return self.steps[step_index - 1]
        return None

    def rule_for(self, name):
        for spec in self.steps:
            if name in spec.rules:
                return spec.rules[name]
        return None

    def initial_fields(self):
        fields = {}
        for spec in self.steps:
            for name, rule in spec.rules.items():
                if rule.multi:
                    fields[name] = []
        fields.update(self.defaults)
        return fields


def graduation_after_admission(fields):
    admitted, graduating = fields.get('yearOfAdmission'), fields.get('expectedGraduationYear')
    if isinstance(admitted, int) and isinstance(graduating, int) and graduating < admitted:
        return ('expectedGraduationYear', "Graduation year cannot be before the year of admission")
    return None


def _identity_rules():
    return {
        'firstName': Text("First name is required"),
        'lastName': Text("Last name is required"),
        'gender': Choice("Please select your gender", GENDER_OPTIONS),
        'institutionId': Text("Please select your institution"),
    }


STUDENT_FLOW = RoleFlow(
    role=ROLE_STUDENT,
    steps=[
        StepSpec("Basic information", _identity_rules()),
        StepSpec(
            "Academic details",
            {
                'currentLevel': Integer("Please select your current level", 100, 900),
                'yearOfAdmission': Integer("Please select a valid year of admission", 2011, _current_year),
                'expectedGraduationYear': Integer(
                    "Please select a valid graduation year",
                    _current_year,
                    lambda: _current_year() + 8,
                ),
                'modeOfStudy': Choice("Please select your mode of study", MODE_OF_STUDY_OPTIONS),
                'programmeId': Text("Programme is required"),
            },
            checks=(graduation_after_admission,),
        ),
        StepSpec(
            "Learning preferences",
            {
                'studyGoals': MultiSelect("Please select at least 2 study goals", min_items=2),
                'learningStyle': MultiSelect("Please select at least 2 learning styles", min_items=2),
                'studySchedule': MultiSelect("Please select at least 1 study schedule"),
            },
        ),
    ],
)

INSTRUCTOR_FLOW = RoleFlow(
    role=ROLE_INSTRUCTOR,
    steps=[
        StepSpec("Basic information", _identity_rules()),
        StepSpec(
            "Expertise",
            {
                'specialization': MultiSelect("Please select at least 1 specialization area"),
                'yearsOfExperience': Integer("Years of experience must be between 0 and 50", 0, 50),
                'teachingSubjects': MultiSelect("Please select at least 1 teaching subject"),
                'qualifications': MultiSelect("Please select at least 1 qualification"),
            },
        ),
        StepSpec(
            "Teaching style",
            {
                'teachingMethods': MultiSelect("Please select at least 1 teaching method"),
                'bio': Text(
                    "Please provide a brief bio (minimum 10 characters)",
                    min_length=10,
                    max_length=500,
                    max_message="Bio must be less than 500 characters",
                ),
            },
        ),
    ],
)

INSTITUTION_FLOW = RoleFlow(
    role=ROLE_INSTITUTION,
    steps=[
        StepSpec(
            "Contact person",
            {
                'firstName': Text("First name is required"),
                'lastName': Text("Last name is required"),
            },
        ),
        StepSpec(
            "Institution details",
            {
                'institutionName': Text("Institution name is required", min_length=2),
                'institutionType': Choice("Institution type is required", INSTITUTION_TYPE_OPTIONS),
                'numberOfStudents': Range("Number of students is required", STUDENT_COUNT_BUCKETS),
            },
        ),
        StepSpec(
            "Departments and contact",
            {
                'departments': MultiSelect("Please select at least 1 department"),
                'institutionAddress': Text("Address is required", min_length=5),
                'institutionPhone': Text("Valid phone number is required", min_length=10),
            },
        ),
        StepSpec(
            "About the institution",
            {
                'bio': Text(
                    "Please provide a description of your institution (minimum 20 characters)",
                    min_length=20,
                    max_length=1000,
                    max_message="Description must be less than 1000 characters",
                ),
            },
        ),
    ],
)

FLOWS = {
    flow.role: flow
    for flow in (STUDENT_FLOW, INSTRUCTOR_FLOW, INSTITUTION_FLOW)
}


def get_flow(role, flows=None):
    return (flows or FLOWS).get(role)
