# onboarding/machine.py
import logging
from core.exceptions import InvalidTransition, ServiceError
from .steps import get_flow
from .validation import ValidationResult, validate_step

logger = logging.getLogger(__name__)

STATE_STEP = 'step'
STATE_SUBMITTING = 'submitting'
STATE_COMPLETED = 'completed'
STATE_ABORTED = 'aborted'

TERMINAL_STATES = (STATE_COMPLETED, STATE_ABORTED)


class OnboardingSession:
    """
    State machine driving one user through a role's onboarding steps.

    Fields accumulate across steps and are never reset by a transition, so a
    failed advance() or submit() loses nothing. The session is plain data
    (see to_dict/from_dict) and can live in the Django session between requests.

    States: step(1..N) -> submitting -> completed, with aborted reachable from
    any non-terminal state.
    """

    def __init__(self, flow, current_step=1, fields=None, validation_errors=None,
                 state=STATE_STEP, submit_error='', account_id=None):
        self.flow = flow
        self.current_step = current_step
        self.fields = fields if fields is not None else flow.initial_fields()
        self.validation_errors = validation_errors or {}
        self.state = state
        self.submit_error = submit_error
        self.account_id = account_id

    @classmethod
    def start(cls, flow):
        logger.info(f"Onboarding session started for role {flow.role}")
        return cls(flow)

    @property
    def role(self):
        return self.flow.role

    @property
    def total_steps(self):
        return self.flow.total_steps

    @property
    def is_terminal(self):
        return self.state in TERMINAL_STATES

    def _require_active(self, action):
        if self.is_terminal:
            raise InvalidTransition(f"Cannot {action}: onboarding is already {self.state}.")

    # --- field edits ---

    def update_field(self, name, value):
        """Merges one value into the accumulated fields. Does not re-validate."""
        self._require_active('update a field')
        rule = self.flow.rule_for(name)
        self.fields[name] = rule.coerce(value) if rule else value

    def toggle_field(self, name, value):
        """Adds value to a multi-select field, or removes it if already selected."""
        self._require_active('update a field')
        rule = self.flow.rule_for(name)
        if rule is None or not rule.multi:
            raise InvalidTransition(f"{name} is not a multi-select field.")
        current = list(self.fields.get(name) or [])
        if value in current:
            current.remove(value)
        else:
            current.append(value)
        self.fields[name] = current
        return current

    def select_range(self, name, bucket):
        """Stores the upper bound of the chosen bucket rather than its label."""
        self._require_active('update a field')
        rule = self.flow.rule_for(name)
        if rule is None or not hasattr(rule, 'upper_bound'):
            raise InvalidTransition(f"{name} is not a range field.")
        upper = rule.upper_bound(bucket)
        if upper is None:
            raise InvalidTransition(f"Unknown option for {name}: {bucket}")
        self.fields[name] = upper
        return upper

    # --- transitions ---

    def revalidate(self):
        """Explicit re-check of the current step without moving."""
        if self.state != STATE_STEP:
            return ValidationResult(True)
        result = validate_step(self.flow, self.current_step, self.fields)
        self.validation_errors = dict(result.errors)
        return result

    def advance(self, account_writer=None):
        """
        Moves to the next step if the current one validates. Leaving the last
        step enters `submitting` and, when an account writer is supplied,
        submits straight away.
        """
        self._require_active('advance')
        if self.state == STATE_SUBMITTING:
            raise InvalidTransition("All steps are complete; submit instead.")

        result = self.revalidate()
        if not result.valid:
            return result

        self.current_step += 1
        if self.current_step > self.total_steps:
            self.state = STATE_SUBMITTING
            if account_writer is not None:
                self.submit(account_writer)
        return result

    def retreat(self):
        """Goes back one step without validating."""
        self._require_active('go back')
        if self.current_step <= 1:
            raise InvalidTransition("Already at the first step.")
        self.current_step -= 1
        self.state = STATE_STEP
        self.validation_errors = {}
        self.submit_error = ''

    def submit(self, account_writer):
        """
        Hands the full payload to account storage in one write.

        On failure the session stays in `submitting` with submit_error set;
        retrying is up to the user. Returns the emitted payload on success.
        """
        if self.state != STATE_SUBMITTING:
            raise InvalidTransition("Onboarding is not ready to be submitted.")

        # Fields can still be edited while submitting, so check every step again.
        for step_index in range(1, self.total_steps + 1):
            result = validate_step(self.flow, step_index, self.fields)
            if not result.valid:
                self.current_step = step_index
                self.state = STATE_STEP
                self.validation_errors = dict(result.errors)
                self.submit_error = ''
                return None

        payload = self.payload()
        try:
            self.account_id = account_writer(self.role, dict(self.fields))
        except ServiceError as e:
            self.submit_error = str(e) or "Onboarding failed"
            logger.warning(f"Onboarding submit failed for role {self.role}: {self.submit_error}")
            return None

        self.submit_error = ''
        self.validation_errors = {}
        self.state = STATE_COMPLETED
        return payload

    def cancel(self):
        self._require_active('cancel')
        self.state = STATE_ABORTED
        logger.info(f"Onboarding session for role {self.role} abandoned at step {self.current_step}")

    # --- views / persistence ---

    def payload(self):
        data = dict(self.fields)
        data['role'] = self.role
        return data

    def to_dict(self):
        return {
            'role': self.role,
            'current_step': self.current_step,
            'total_steps': self.total_steps,
            'fields': dict(self.fields),
            'validation_errors': dict(self.validation_errors),
            'state': self.state,
            'submit_error': self.submit_error,
            'account_id': str(self.account_id) if self.account_id else None,
        }

    @classmethod
    def from_dict(cls, data, flows=None):
        flow = get_flow(data.get('role'), flows)
        if flow is None:
            raise InvalidTransition(f"Unknown onboarding role: {data.get('role')}")
        return cls(
            flow,
            current_step=data.get('current_step', 1),
            fields=dict(data.get('fields') or {}),
            validation_errors=dict(data.get('validation_errors') or {}),
            state=data.get('state', STATE_STEP),
            submit_error=data.get('submit_error', ''),
            account_id=data.get('account_id'),
        )
