"""
MEDS Backend — Collection Access Rules
========================================

What:  Per-collection, per-operation authorization rules.
How:   Small composable rule objects evaluated against the requesting user
       and (for view/update/delete) the target record.
Who:   Checked by the records service before every collection operation and
       by the queue/encounter/settings routes that write records directly.

Rule vocabulary:
    LOCKED            only superusers
    PUBLIC            anyone, including anonymous callers
    AUTHENTICATED     any signed-in user
    has_role(*roles)  signed-in user whose role is one of `roles`
    is_self()         the record being accessed is the caller's own user row

    Rules compose with `|`:  has_role("admin") | is_self()

Superusers pass every rule. A rule that fails for an anonymous caller raises
AuthenticationError (401); for a signed-in caller PermissionDeniedError (403).

Effective rules:
    ┌───────────────┬──────────┬──────────┬──────────┬──────────────┬────────────────────────┐
    │ collection    │ list     │ view     │ create   │ update       │ delete                 │
    ├───────────────┼──────────┼──────────┼──────────┼──────────────┼────────────────────────┤
    │ (default)     │ auth     │ auth     │ auth     │ auth         │ admin|provider         │
    │ disbursements │ auth     │ auth     │ auth     │ auth         │ admin|provider|pharmacy│
    │ settings      │ auth     │ auth     │ admin    │ admin        │ locked                 │
    │ users         │ auth     │ auth     │ admin    │ admin|self   │ admin                  │
    └───────────────┴──────────┴──────────┴──────────┴──────────────┴────────────────────────┘
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from meds.exceptions import AuthenticationError, PermissionDeniedError
from meds.models.user import User

OPERATIONS = ("list", "view", "create", "update", "delete")


class Rule:
    """A predicate over (user, record). `user` is None for anonymous callers."""

    def __init__(self, check: Callable[[Optional[User], Any], bool], label: str):
        self._check = check
        self.label = label

    def allows(self, user: Optional[User], record: Any = None) -> bool:
        if user is not None and user.is_superuser:
            return True
        return self._check(user, record)

    def __or__(self, other: "Rule") -> "Rule":
        return Rule(
            lambda user, record: self._check(user, record) or other._check(user, record),
            f"{self.label} | {other.label}",
        )

    def __repr__(self) -> str:
        return f"<Rule {self.label}>"


LOCKED = Rule(lambda user, record: False, "locked")
PUBLIC = Rule(lambda user, record: True, "public")
AUTHENTICATED = Rule(lambda user, record: user is not None, "authenticated")


def has_role(*roles: str) -> Rule:
    return Rule(
        lambda user, record: user is not None and user.role in roles,
        "role in (" + ", ".join(roles) + ")",
    )


def is_self() -> Rule:
    return Rule(
        lambda user, record: (
            user is not None and record is not None and getattr(record, "id", None) == user.id
        ),
        "self",
    )


@dataclass(frozen=True)
class CollectionRules:
    list: Rule = AUTHENTICATED
    view: Rule = AUTHENTICATED
    create: Rule = AUTHENTICATED
    update: Rule = AUTHENTICATED
    delete: Rule = has_role("admin", "provider")

    def for_operation(self, operation: str) -> Rule:
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown collection operation: {operation}")
        return getattr(self, operation)


DEFAULT_RULES = CollectionRules()

COLLECTION_RULES: Dict[str, CollectionRules] = {
    "disbursements": CollectionRules(delete=has_role("admin", "provider", "pharmacy")),
    "settings": CollectionRules(
        create=has_role("admin"),
        update=has_role("admin"),
        delete=LOCKED,
    ),
    "users": CollectionRules(
        create=has_role("admin"),
        update=has_role("admin") | is_self(),
        delete=has_role("admin"),
    ),
}


def rules_for(collection: str) -> CollectionRules:
    return COLLECTION_RULES.get(collection, DEFAULT_RULES)


def enforce(rule: Rule, user: Optional[User], record: Any = None, *, action: str = "") -> None:
    """
    Raise if `rule` rejects the caller.

    Raises:
        AuthenticationError: Anonymous caller (→ 401)
        PermissionDeniedError: Signed-in caller without access (→ 403)
    """
    if rule.allows(user, record):
        return
    context = {"action": action, "rule": rule.label}
    if user is None:
        raise AuthenticationError(
            message="The request requires valid record authorization token.",
            context=context,
        )
    raise PermissionDeniedError(
        message="You are not allowed to perform this request.",
        context=context,
    )
