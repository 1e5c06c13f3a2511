"""Unit tests for privacy policy defaulting."""

import pytest

from app.features.private.policy import PrivacyPolicy, default_private_value, resolve_private_flag


@pytest.mark.parametrize(
    "policy,expected",
    [
        (PrivacyPolicy.DISABLED, False),
        (PrivacyPolicy.ALLOWED, False),
        (PrivacyPolicy.AUTOMATICALLY_PRIVATE, True),
        (PrivacyPolicy.ALWAYS_PRIVATE, True),
    ],
)
def test_default_private_value(policy, expected):
    assert default_private_value(policy) is expected


@pytest.mark.parametrize(
    "policy,requested,current,can_mark,expected",
    [
        # Always private wins over everything
        (PrivacyPolicy.ALWAYS_PRIVATE, False, None, True, True),
        (PrivacyPolicy.ALWAYS_PRIVATE, False, False, True, True),
        # Disabled never sets the flag but leaves existing values alone
        (PrivacyPolicy.DISABLED, True, None, True, False),
        (PrivacyPolicy.DISABLED, False, True, True, True),
        # Allowed: author with the permission decides
        (PrivacyPolicy.ALLOWED, True, None, True, True),
        (PrivacyPolicy.ALLOWED, False, True, True, False),
        # Allowed: without the permission the request is ignored
        (PrivacyPolicy.ALLOWED, True, None, False, False),
        (PrivacyPolicy.ALLOWED, False, True, False, True),
        # Automatically private defaults new items to private
        (PrivacyPolicy.AUTOMATICALLY_PRIVATE, None, None, True, True),
        (PrivacyPolicy.AUTOMATICALLY_PRIVATE, True, None, False, True),
        (PrivacyPolicy.AUTOMATICALLY_PRIVATE, False, None, True, False),
        (PrivacyPolicy.AUTOMATICALLY_PRIVATE, None, False, True, False),
    ],
)
def test_resolve_private_flag(policy, requested, current, can_mark, expected):
    assert resolve_private_flag(policy, requested, current, can_mark) is expected
