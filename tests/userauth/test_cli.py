"""Tests for the userauth command-line entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

from userauth.__main__ import main, parse_args, summarize
from userauth.errors.exceptions import AuthenticationCanceledError
from userauth.tokens.token import RenewableAccessToken


@pytest.fixture
def mock_provider():
    with patch("userauth.__main__.UserTokenProvider") as provider_class, patch(
        "userauth.__main__.load_dotenv"
    ), patch("userauth.__main__.setup_logging"):
        provider = provider_class.return_value.__enter__.return_value
        yield provider


@pytest.fixture
def token(provider, config, result_factory):
    return RenewableAccessToken(result_factory("secret-token"), provider, config)


class TestParseArgs:
    def test_login(self):
        args = parse_args(["login", "--user", "alice@contoso.com", "--password-env", "PW"])
        assert args.command == "login"
        assert args.user == "alice@contoso.com"
        assert args.password_env == "PW"

    def test_token(self):
        args = parse_args(["--show-token", "token"])
        assert args.command == "token"
        assert args.show_token is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestSummarize:
    def test_masks_user_and_hides_token(self, token):
        summary = summarize(token)

        assert summary["user"] == "al***@contoso.com"
        assert summary["login_type"] == "OrgId"
        assert "access_token" not in summary

    def test_show_token(self, token):
        assert summarize(token, show_token=True)["access_token"] == "secret-token"


class TestMain:
    def test_login_uses_device_code_prompt(self, mock_provider, token, capsys):
        mock_provider.get_access_token.return_value = token

        assert main(["login"]) == 0

        kwargs = mock_provider.get_access_token.call_args.kwargs
        assert kwargs["prompt_action"] is not None
        assert kwargs["password"] is None
        output = json.loads(capsys.readouterr().out)
        assert output["tenant_id"] == "tenant-1"

    def test_login_with_password_env(self, mock_provider, token, monkeypatch):
        monkeypatch.setenv("USER_PW", "hunter2")
        mock_provider.get_access_token.return_value = token

        assert main(["login", "--user", "alice@contoso.com", "--password-env", "USER_PW"]) == 0

        kwargs = mock_provider.get_access_token.call_args.kwargs
        assert kwargs["user_id"] == "alice@contoso.com"
        assert kwargs["password"] == "hunter2"

    def test_missing_password_env(self, mock_provider, monkeypatch):
        monkeypatch.delenv("USER_PW", raising=False)

        assert main(["login", "--password-env", "USER_PW"]) == 2
        mock_provider.get_access_token.assert_not_called()

    def test_token_is_silent(self, mock_provider, token):
        mock_provider.get_access_token.return_value = token

        assert main(["token", "--user", "alice@contoso.com"]) == 0

        assert mock_provider.get_access_token.call_args.kwargs["prompt_action"] is None

    def test_auth_error_exit_code(self, mock_provider, capsys):
        mock_provider.get_access_token.side_effect = AuthenticationCanceledError("User canceled")

        assert main(["login"]) == 1
        assert "User canceled" in capsys.readouterr().err
