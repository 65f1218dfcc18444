"""
Explorer Tests

Resting transitions driven by expedition changes and the exited-resting
event that resumes paused sponsorships.
"""

from datetime import timedelta
from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError, connection, transaction
from django.test import TestCase
from django.utils import timezone

from explorers.models import Expedition, ExpeditionStatus, Explorer
from explorers.services import RestingStatusService
from explorers.signals import explorer_exited_resting
from sponsorships.models import Sponsorship, SponsorshipStatus, SponsorshipType


class RestingStatusTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="erik", password="Musterpassword")
        self.explorer = Explorer.objects.create(user=self.user)

    def resting_since(self):
        return Explorer.objects.get(pk=self.explorer.pk).resting_since

    def testCompletingLastExpeditionEntersResting(self):
        expedition = Expedition.objects.create(author=self.explorer, title="Andes")
        self.assertIsNone(self.resting_since())

        expedition.status = ExpeditionStatus.COMPLETED
        expedition.save()

        self.assertIsNotNone(self.resting_since())

    def testDeletingLastExpeditionEntersResting(self):
        expedition = Expedition.objects.create(author=self.explorer, title="Andes")

        expedition.delete()

        self.assertIsNotNone(self.resting_since())

    def testRestingStartIsNotMovedByFurtherChanges(self):
        started = timezone.now() - timedelta(days=40)
        Explorer.objects.filter(pk=self.explorer.pk).update(resting_since=started)

        Expedition.objects.create(
            author=self.explorer, title="Old trip", status=ExpeditionStatus.COMPLETED
        )

        self.assertEqual(self.resting_since(), started)

    def testNewExpeditionExitsRestingAfterCommit(self):
        Explorer.objects.filter(pk=self.explorer.pk).update(
            resting_since=timezone.now() - timedelta(days=40)
        )
        handler = mock.Mock()
        explorer_exited_resting.connect(handler)
        self.addCleanup(explorer_exited_resting.disconnect, handler)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            Expedition.objects.create(author=self.explorer, title="Patagonia")
            handler.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        self.assertIsNone(self.resting_since())
        handler.assert_called_once_with(
            signal=explorer_exited_resting, sender=Explorer, explorer_id=self.explorer.pk
        )

    def testOngoingExpeditionWhileNotRestingSendsNothing(self):
        with self.captureOnCommitCallbacks() as callbacks:
            Expedition.objects.create(author=self.explorer, title="Andes")
            Expedition.objects.create(author=self.explorer, title="Alps")

        self.assertEqual(callbacks, [])

    def testDatabaseErrorIsLogged(self):
        with mock.patch.object(
            Expedition.objects, "ongoing", side_effect=DatabaseError("db down")
        ):
            with self.assertLogs("explorers.services", level="ERROR"):
                RestingStatusService().check_and_update(self.explorer.pk)

    def testUnknownExplorerIsIgnored(self):
        RestingStatusService().check_and_update(999999)


class ExitedRestingResumesBillingTests(TestCase):
    def setUp(self):
        self.explorer = Explorer.objects.create(
            user=User.objects.create_user(username="erik", password="Musterpassword"),
            resting_since=timezone.now() - timedelta(days=45),
        )
        sponsor = User.objects.create_user(username="anna", password="Musterpassword")
        self.sponsorship = Sponsorship.objects.create(
            sponsor=sponsor,
            sponsored_explorer=self.explorer,
            type=SponsorshipType.SUBSCRIPTION,
            status=SponsorshipStatus.PAUSED,
            stripe_subscription_id="sub_1",
        )

    @mock.patch("stripe.Subscription.modify")
    def testPausedSponsorshipsResumeWhenExplorerSetsOut(self, modify):
        with self.captureOnCommitCallbacks(execute=True):
            Expedition.objects.create(author=self.explorer, title="Patagonia")

        modify.assert_called_once_with("sub_1", pause_collection="")
        self.sponsorship.refresh_from_db()
        self.assertEqual(self.sponsorship.status, SponsorshipStatus.ACTIVE)

    @mock.patch("stripe.Subscription.modify")
    def testResumeFailureDoesNotBreakExpeditionSave(self, modify):
        import stripe

        modify.side_effect = stripe.APIConnectionError("Request timed out")

        with self.captureOnCommitCallbacks(execute=True):
            expedition = Expedition.objects.create(author=self.explorer, title="Patagonia")

        self.assertTrue(Expedition.objects.filter(pk=expedition.pk).exists())
        self.sponsorship.refresh_from_db()
        self.assertEqual(self.sponsorship.status, SponsorshipStatus.PAUSED)


class RestingStatusSavepointTests(TestCase):
    def setUp(self):
        self.explorer = Explorer.objects.create(
            user=User.objects.create_user(username="erik", password="Musterpassword")
        )

    def testBookkeepingRunsInItsOwnSavepoint(self):
        outer_savepoints = len(connection.savepoint_ids)
        seen = []

        def record(explorer_id):
            seen.append(len(connection.savepoint_ids))

        with mock.patch.object(RestingStatusService, "_update", side_effect=record):
            RestingStatusService().check_and_update(self.explorer.pk)

        self.assertEqual(seen, [outer_savepoints + 1])

    def testDatabaseErrorLeavesCallerTransactionUsable(self):
        def broken_query(explorer_id):
            with connection.cursor() as cursor:
                cursor.execute("SELECT * FROM no_such_table")

        with transaction.atomic():
            with mock.patch.object(RestingStatusService, "_update", side_effect=broken_query):
                with self.assertLogs("explorers.services", level="ERROR"):
                    RestingStatusService().check_and_update(self.explorer.pk)

            self.assertFalse(transaction.get_rollback())
            Expedition.objects.create(author=self.explorer, title="Andes")

        self.assertTrue(Expedition.objects.filter(author=self.explorer).exists())
