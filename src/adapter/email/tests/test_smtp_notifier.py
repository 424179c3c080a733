"""Tests for SmtpNotifier rendering and delivery."""

import unittest
from unittest.mock import MagicMock, patch

from adapter.email.smtp_notifier import SmtpNotifier, render
from port.notifier import NotificationTemplate

RESET_DATA = {
    'reset_url': 'https://app.example.com/reset-password?token=abc123',
    'token': 'abc123',
    'expires_in_minutes': 30,
}


class TestRender(unittest.TestCase):

    def test_reset_template_contains_link(self):
        subject, text, html = render(NotificationTemplate.PASSWORD_RESET, RESET_DATA)

        self.assertIn('Reset', subject)
        self.assertIn(RESET_DATA['reset_url'], text)
        self.assertIn(RESET_DATA['reset_url'], html)
        self.assertIn('30 minutes', text)

    def test_confirmation_template(self):
        subject, text, _ = render(NotificationTemplate.PASSWORD_RESET_CONFIRMATION, {})
        self.assertIn('changed', subject)
        self.assertIn('reset successfully', text)


class TestSmtpNotifier(unittest.IsolatedAsyncioTestCase):

    async def test_unconfigured_logs_instead_of_sending(self):
        notifier = SmtpNotifier(host='')
        with patch('adapter.email.smtp_notifier.smtplib.SMTP') as smtp:
            with self.assertLogs('adapter.email.smtp_notifier', level='INFO') as logs:
                await notifier.send('user@example.com', NotificationTemplate.PASSWORD_RESET, RESET_DATA)

        smtp.assert_not_called()
        output = '\n'.join(logs.output)
        self.assertNotIn('abc123', output)

    async def test_sends_with_starttls_and_login(self):
        notifier = SmtpNotifier(
            host='smtp.example.com', port=587, username='mailer', password='pw', sender='noreply@example.com',
        )
        server = MagicMock()
        with patch('adapter.email.smtp_notifier.smtplib.SMTP') as smtp:
            smtp.return_value.__enter__.return_value = server
            await notifier.send('user@example.com', NotificationTemplate.PASSWORD_RESET, RESET_DATA)

        smtp.assert_called_once_with('smtp.example.com', 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with('mailer', 'pw')
        message = server.send_message.call_args[0][0]
        self.assertEqual(message['To'], 'user@example.com')
        self.assertEqual(message['From'], 'noreply@example.com')

    async def test_uses_ssl_on_port_465(self):
        notifier = SmtpNotifier(host='smtp.example.com', port=465, username='', password='')
        with patch('adapter.email.smtp_notifier.smtplib.SMTP_SSL') as smtp_ssl:
            await notifier.send('user@example.com', NotificationTemplate.PASSWORD_RESET_CONFIRMATION, {})
        smtp_ssl.assert_called_once_with('smtp.example.com', 465, timeout=30)

    async def test_delivery_failure_propagates(self):
        notifier = SmtpNotifier(host='smtp.example.com', port=587)
        with patch('adapter.email.smtp_notifier.smtplib.SMTP', side_effect=OSError('refused')):
            with self.assertRaises(OSError):
                await notifier.send('user@example.com', NotificationTemplate.PASSWORD_RESET, RESET_DATA)


if __name__ == '__main__':
    unittest.main()
