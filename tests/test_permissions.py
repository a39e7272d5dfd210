from __future__ import annotations

from unittest.mock import MagicMock

import discord
import pytest

from core.errors import PermissionDenied
from core.permissions import is_admin, is_staff, require_admin, require_staff

from conftest import make_member


def test_staff_role_holder_is_staff(config):
    assert is_staff(make_member(staff=True), config)
    assert not is_staff(make_member(), config)


def test_admin_counts_as_staff(config):
    admin = make_member(admin=True)

    assert is_admin(admin)
    assert is_staff(admin, config)


def test_plain_user_is_never_staff(config):
    user = MagicMock(spec=discord.User)
    user.id = 1

    assert not is_staff(user, config)
    assert not is_admin(user)


def test_require_helpers(config):
    require_staff(make_member(staff=True), config)

    with pytest.raises(PermissionDenied):
        require_staff(make_member(), config)
    with pytest.raises(PermissionDenied, match="administrator"):
        require_admin(make_member(staff=True))
