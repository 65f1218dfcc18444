from django.core import mail
from django.test import TestCase, override_settings

from core.notifications.emitter import NotificationEmitter
from core.notifications.signals import SPONSORSHIP_AUTO_CANCELED, notification_requested


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    FRONTEND_URL="https://journal.example.com",
    DEFAULT_FROM_EMAIL="noreply@example.com",
)
class NotificationEmailTests(TestCase):
    payload = {
        "to": "anna@test.com",
        "vars": {
            "sponsor_username": "anna",
            "explorer_name": "Erik the Red",
            "explorer_username": "erik",
            "resting_days": 90,
        },
    }

    def testAutoCanceledEmail(self):
        NotificationEmitter().emit(SPONSORSHIP_AUTO_CANCELED, self.payload)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["anna@test.com"])
        self.assertEqual(message.from_email, "noreply@example.com")
        self.assertEqual(message.subject, "Your sponsorship of Erik the Red has ended")
        self.assertIn("more than 90 days", message.body)
        self.assertIn("https://journal.example.com/erik", message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertIn("Erik the Red", html)

    def testMissingRecipientIsSkipped(self):
        NotificationEmitter().emit(SPONSORSHIP_AUTO_CANCELED, {"vars": {}})

        self.assertEqual(mail.outbox, [])

    def testUnknownEventSendsNoEmail(self):
        NotificationEmitter().emit("expedition_liked", self.payload)

        self.assertEqual(mail.outbox, [])

    def testReceiverErrorsAreLoggedNotRaised(self):
        def failing(**kwargs):
            raise RuntimeError("smtp down")

        notification_requested.connect(failing)
        self.addCleanup(notification_requested.disconnect, failing)

        with self.assertLogs("core.notifications.emitter", level="ERROR"):
            NotificationEmitter().emit(SPONSORSHIP_AUTO_CANCELED, self.payload)

        self.assertEqual(len(mail.outbox), 1)
