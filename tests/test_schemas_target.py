"""Tests for the backup target schema."""

import pytest
from pydantic import ValidationError

from gitback.schemas import AuthMode, BackupTarget


class TestBackupTarget:
    """Tests for BackupTarget validation."""

    def test_no_auth_with_username(self):
        target = BackupTarget(auth_mode=AuthMode.NONE, username="alice")

        assert target.username == "alice"
        assert not target.is_authenticated

    @pytest.mark.parametrize("username", [None, ""])
    def test_no_auth_requires_username(self, username):
        with pytest.raises(ValidationError, match="username is required"):
            BackupTarget(auth_mode=AuthMode.NONE, username=username)

    def test_token_mode(self):
        target = BackupTarget(auth_mode=AuthMode.TOKEN, token="ghp_x")

        assert target.is_authenticated
        assert target.username is None

    @pytest.mark.parametrize("token", [None, ""])
    def test_token_mode_requires_token(self, token):
        with pytest.raises(ValidationError, match="GitHub token required"):
            BackupTarget(auth_mode=AuthMode.TOKEN, token=token)

    def test_token_not_in_repr(self):
        target = BackupTarget(auth_mode=AuthMode.TOKEN, token="ghp_supersecret")

        assert "ghp_supersecret" not in repr(target)

    def test_auth_mode_from_string(self):
        target = BackupTarget(auth_mode="none", username="alice")

        assert target.auth_mode is AuthMode.NONE

    def test_immutable(self):
        target = BackupTarget(auth_mode=AuthMode.NONE, username="alice")

        with pytest.raises(ValidationError):
            target.username = "bob"  # type: ignore[misc]
