# onboarding/dispatch.py
from dataclasses import dataclass
from typing import Optional

from core.cookies import HINTABLE_ROLES
from .steps import FLOWS, ROLE_INSTRUCTOR, ROLE_STUDENT, RoleFlow

# Roles offered on the role-selection prompt. Institutions arrive through
# their own signup entry point and carry a pending role hint instead.
SELECTABLE_ROLES = (ROLE_STUDENT, ROLE_INSTRUCTOR)


@dataclass(frozen=True)
class DispatchResult:
    variant: Optional[RoleFlow]
    hint_consumed: bool = False

    @property
    def role(self):
        return self.variant.role if self.variant else None


def select_variant(explicit_role=None, pending_role_hint=None, account_role=None, flows=None):
    """
    Picks the onboarding flow for a user.

    Resolution order:
      1. a role already recorded on the account,
      2. the pending role hint (consumed once; the caller must drop it from
         wherever it lives when hint_consumed is True),
      3. an explicit choice from the role-selection prompt.
    A None variant means the caller should show the role-selection prompt.
    """
    flows = flows or FLOWS

    if account_role:
        # Roles without a flow (admin) never onboard; the hint is left alone.
        return DispatchResult(flows.get(account_role))

    hint_consumed = bool(pending_role_hint)
    if pending_role_hint in HINTABLE_ROLES and pending_role_hint in flows:
        return DispatchResult(flows[pending_role_hint], hint_consumed=True)

    if explicit_role in SELECTABLE_ROLES and explicit_role in flows:
        return DispatchResult(flows[explicit_role], hint_consumed=hint_consumed)

    return DispatchResult(None, hint_consumed=hint_consumed)
