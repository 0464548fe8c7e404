"""
Command line entrypoint tests.

Run with: pytest tests/unit/test_app.py -v
"""

from unittest.mock import AsyncMock, patch

from conftest import make_message
from helpdesk_sync import app
from helpdesk_sync.services.message_sync import ThreadUpdate
from helpdesk_sync.utils.error_handling import NotFoundError


class TestMain:
    def test_missing_token_exits_with_usage_error(self, monkeypatch, capsys):
        monkeypatch.delenv("HELPDESK_TOKEN", raising=False)

        assert app.main(["watch", "5"]) == 2
        assert "bearer token" in capsys.readouterr().err

    @patch("helpdesk_sync.app.HelpdeskClient")
    @patch("helpdesk_sync.app.watch", new_callable=AsyncMock)
    def test_backend_error_exits_with_one(self, mock_watch, mock_client, capsys):
        mock_watch.side_effect = NotFoundError("Ticket 5 not found")

        code = app.main(["watch", "5", "--token", "t", "--role", "TECNICO"])

        assert code == 1
        assert "Ticket 5 not found" in capsys.readouterr().err
        mock_client.return_value.close.assert_called_once()
        session = mock_client.call_args.args[0]
        assert session.role.value == "TECNICO"

    def test_parser_defaults_role_to_requester(self, monkeypatch):
        monkeypatch.delenv("HELPDESK_ROLE", raising=False)

        args = app.build_parser().parse_args(["watch", "7", "--token", "t"])

        assert args.ticket_id == 7
        assert args.role == "USUARIO"


class TestPrintUpdate:
    def test_only_new_messages_are_printed(self, capsys):
        old, new = make_message(1, 0, body="first"), make_message(2, 5, body="second")
        update = ThreadUpdate(
            ticket_id=1, seq=2, new_ids=(2,), previous_count=1, messages=(old, new)
        )

        app._print_update(update)

        out = capsys.readouterr().out
        assert "second" in out
        assert "first" not in out
