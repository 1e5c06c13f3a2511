"""
Per content type privacy policy and the save-time defaulting it drives.

The policy only decides what value the private flag gets when an item is
saved. Grant computation never looks at it.
"""
import enum
from typing import Optional


class PrivacyPolicy(str, enum.Enum):
    """How a content type treats the private flag."""
    DISABLED = "disabled"
    ALLOWED = "allowed"
    AUTOMATICALLY_PRIVATE = "automatically_private"
    ALWAYS_PRIVATE = "always_private"


DEFAULT_PRIVACY_POLICY = PrivacyPolicy.ALLOWED


def default_private_value(policy: PrivacyPolicy) -> bool:
    """Initial value of the flag for a brand new item."""
    return policy in (PrivacyPolicy.AUTOMATICALLY_PRIVATE, PrivacyPolicy.ALWAYS_PRIVATE)


def resolve_private_flag(
    policy: PrivacyPolicy,
    requested: Optional[bool],
    current: Optional[bool],
    can_mark_private: bool,
) -> bool:
    """
    Decide the private flag to store on save.

    Args:
        policy: The content type's policy
        requested: Value the author submitted (None when omitted)
        current: Value already stored (None for new items)
        can_mark_private: Whether the author may change the flag

    Returns:
        The flag to persist
    """
    if policy is PrivacyPolicy.ALWAYS_PRIVATE:
        return True

    if policy is PrivacyPolicy.DISABLED:
        return bool(current)

    if can_mark_private and requested is not None:
        return requested

    if current is not None:
        return current

    return default_private_value(policy)
