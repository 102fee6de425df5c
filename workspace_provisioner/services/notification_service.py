import logging
import smtplib
from email.mime.text import MIMEText

from workspace_provisioner.services.collaborators import INotifier

LOGGER = logging.getLogger(__name__)


class SmtpNotifier(INotifier):
    """
    SMTP로 메일을 보내는 알림 구현.

    MAIL_SUPPRESS_SEND가 켜져 있으면 실제로 보내지 않습니다.
    본문에는 비밀번호가 들어갈 수 있으므로 로그에는 수신자와 제목만 남깁니다.
    """

    def __init__(self, config):
        self.config = config

    def notify(self, identity: str, subject: str, body: str) -> None:
        msg = MIMEText(body)
        msg['Subject'] = subject
        msg['To'] = identity
        msg['From'] = self.config.MAIL_SENDER_EMAIL

        if self.config.MAIL_SUPPRESS_SEND:
            LOGGER.info("Mail sending suppressed in config (to=%s, subject=%s)", identity, subject)
            return

        s = smtplib.SMTP(self.config.MAIL_SERVER)
        try:
            if self.config.MAIL_USE_TLS:
                s.starttls()
            s.sendmail(msg['From'], [msg['To']], msg.as_string())
        finally:
            s.quit()
        LOGGER.info("Mail sent to %s (subject=%s)", identity, subject)
