# tests/services/test_notification_service.py
import pytest
from unittest.mock import patch

from workspace_provisioner.services.notification_service import SmtpNotifier


class TestSmtpNotifier:
    @patch('workspace_provisioner.services.notification_service.smtplib.SMTP')
    def test_suppressed_send(self, mock_smtp, config):
        """MAIL_SUPPRESS_SEND가 켜져 있으면 SMTP에 연결하지 않는지 테스트합니다."""
        SmtpNotifier(config).notify("alice@example.org", "Certificate information", "body")
        mock_smtp.assert_not_called()

    @patch('workspace_provisioner.services.notification_service.smtplib.SMTP')
    def test_send(self, mock_smtp, config):
        # === Arrange ===
        config.MAIL_SUPPRESS_SEND = False
        config.MAIL_USE_TLS = True

        # === Act ===
        SmtpNotifier(config).notify("alice@example.org", "Certificate information", "body")

        # === Assert ===
        mock_smtp.assert_called_once_with(config.MAIL_SERVER)
        server = mock_smtp.return_value
        server.starttls.assert_called_once()
        server.sendmail.assert_called_once()
        assert server.sendmail.call_args[0][:2] == (config.MAIL_SENDER_EMAIL, ["alice@example.org"])
        server.quit.assert_called_once()

    @patch('workspace_provisioner.services.notification_service.smtplib.SMTP')
    def test_send_failure_propagates_and_quits(self, mock_smtp, config):
        # === Arrange ===
        config.MAIL_SUPPRESS_SEND = False
        mock_smtp.return_value.sendmail.side_effect = ConnectionResetError("reset")

        # === Act & Assert ===
        with pytest.raises(ConnectionResetError):
            SmtpNotifier(config).notify("alice@example.org", "subject", "body")
        mock_smtp.return_value.quit.assert_called_once()
