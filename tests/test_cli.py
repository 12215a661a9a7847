"""Tests for the command-line entry point."""

from unittest.mock import MagicMock, patch

import pytest

from book_catalog.bootstrap import BootstrapResult, Credentials
from book_catalog.cli import apply_overrides, build_parser, main, run
from book_catalog.database.gateway import CatalogSession
from book_catalog.errors import BootstrapError, CatalogConnectionError
from book_catalog.roles import Role


class ScriptedInput:
    def __init__(self, *answers: str):
        self.answers = list(answers)

    def __call__(self, prompt: str) -> str:  # noqa: ARG002
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture
def session():
    return MagicMock(spec=CatalogSession)


class TestArguments:
    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.catalog is None
        assert args.user is None
        assert args.table is None
        assert args.quiet is False

    def test_overrides(self, test_config):
        args = build_parser().parse_args(
            ["--host", "db.internal", "--port", "6543", "--quiet", "--log-level", "DEBUG"]
        )

        config = apply_overrides(test_config, args)

        assert config.host == "db.internal"
        assert config.port == 6543
        assert config.show_notices is False
        assert config.log_level == "DEBUG"

    def test_no_overrides_keeps_config(self, test_config):
        args = build_parser().parse_args([])
        assert apply_overrides(test_config, args) is test_config


class TestRun:
    def test_prompts_and_exits_cleanly(self, test_config, session, capsys):
        args = build_parser().parse_args([])
        result = BootstrapResult(session=session, role=Role.RESTRICTED)
        password = MagicMock(return_value="pw")

        with patch("book_catalog.cli.bootstrap", return_value=result) as mock_bootstrap:
            status = run(
                args,
                test_config,
                input_func=ScriptedInput("library", "reader", "books", "10"),
                password_func=password,
            )

        assert status == 0
        mock_bootstrap.assert_called_once_with(
            Credentials(catalog="library", username="reader", password="pw"), test_config
        )
        assert "Connection successful." in capsys.readouterr().out
        assert session.close.called

    def test_arguments_skip_prompts(self, test_config, session):
        args = build_parser().parse_args(["--catalog", "library", "--user", "admin", "--table", "books"])
        result = BootstrapResult(session=session, role=Role.ADMINISTRATOR)

        with patch("book_catalog.cli.bootstrap", return_value=result) as mock_bootstrap:
            status = run(
                args, test_config, input_func=ScriptedInput("11"), password_func=lambda _: "pw"
            )

        assert status == 0
        credentials = mock_bootstrap.call_args.args[0]
        assert credentials.catalog == "library"
        assert credentials.username == "admin"

    @pytest.mark.parametrize(
        "error",
        [
            CatalogConnectionError("could not connect to server"),
            BootstrapError('extension "dblink" is not available'),
        ],
    )
    def test_startup_failure_is_critical(self, test_config, error, capsys):
        args = build_parser().parse_args(["--catalog", "library", "--user", "admin"])

        with patch("book_catalog.cli.bootstrap", side_effect=error):
            status = run(args, test_config, input_func=ScriptedInput(), password_func=lambda _: "")

        assert status == 1
        assert f"Critical error: {error}" in capsys.readouterr().err

    def test_empty_catalog_is_critical(self, test_config, capsys):
        args = build_parser().parse_args([])

        with patch("book_catalog.cli.bootstrap") as mock_bootstrap:
            status = run(
                args, test_config, input_func=ScriptedInput("", "admin"), password_func=lambda _: ""
            )

        assert status == 1
        mock_bootstrap.assert_not_called()
        assert "Critical error" in capsys.readouterr().err

    def test_interrupt_closes_session(self, test_config, session):
        args = build_parser().parse_args(["--catalog", "library", "--user", "admin", "--table", "b"])
        result = BootstrapResult(session=session, role=Role.ADMINISTRATOR)

        def interrupt(prompt):  # noqa: ARG001
            raise KeyboardInterrupt

        with patch("book_catalog.cli.bootstrap", return_value=result):
            status = run(args, test_config, input_func=interrupt, password_func=lambda _: "pw")

        assert status == 1
        session.close.assert_called_once()


class TestMain:
    def test_main_reports_unreachable_backend(self, clean_env, capsys):
        with (
            patch("book_catalog.cli.getpass.getpass", return_value="pw"),
            patch(
                "book_catalog.cli.bootstrap",
                side_effect=CatalogConnectionError("connection refused"),
            ),
        ):
            status = main(["--catalog", "library", "--user", "admin"])

        assert status == 1
        assert "connection refused" in capsys.readouterr().err
