"""
Tests for the sponsorship billing reconciler.

The Stripe gateway and the notifier are mocked; the store is the real
database store so local status and ``resting_since`` are checked end to end.
"""

from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from core.notifications.emitter import NotificationEmitter
from core.notifications.signals import SPONSORSHIP_AUTO_CANCELED
from core.stripe_integration.exceptions import (
    GatewayConnectionException,
    PaymentGatewayException,
)
from core.stripe_integration.gateway import StripeSubscriptionGateway
from explorers.models import Explorer
from sponsorships.models import Sponsorship, SponsorshipStatus, SponsorshipType
from sponsorships.services import (
    ExplorerStillRestingError,
    SponsorshipBillingService,
    SponsorshipStore,
)

from .utils import make_explorer, make_sponsor, make_sponsorship


def already_canceled_error(subscription_id):
    return PaymentGatewayException(
        f"No such subscription: '{subscription_id}'",
        operation="cancel",
        subscription_id=subscription_id,
        error_code="resource_missing",
        http_status=404,
    )


def timeout_error(subscription_id):
    return GatewayConnectionException(
        "Request timed out", operation="cancel", subscription_id=subscription_id
    )


class BillingServiceTestCase(TestCase):
    def setUp(self):
        self.gateway = mock.create_autospec(StripeSubscriptionGateway, instance=True)
        self.notifier = mock.create_autospec(NotificationEmitter, instance=True)
        self.store = SponsorshipStore()
        self.service = SponsorshipBillingService(
            store=self.store, gateway=self.gateway, notifier=self.notifier
        )

    def status_of(self, sponsorship):
        return Sponsorship.objects.get(pk=sponsorship.pk).status

    def resting_since_of(self, explorer):
        return Explorer.objects.get(pk=explorer.pk).resting_since


class CancelAllPausedSponsorshipsTests(BillingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik", resting_days=91, name="Erik the Red")
        self.sponsor_1 = make_sponsor("anna")
        self.sponsor_2 = make_sponsor("bert")
        self.s1 = make_sponsorship(
            self.sponsor_1, self.explorer, "sub_1", status=SponsorshipStatus.PAUSED
        )
        self.s2 = make_sponsorship(
            self.sponsor_2, self.explorer, "sub_2", status=SponsorshipStatus.PAUSED
        )

    def testCancelWithBenignMissingSubscriptionClearsResting(self):
        self.gateway.cancel.side_effect = [None, already_canceled_error("sub_2")]

        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.CANCELED)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.CANCELED)
        self.assertIsNone(self.resting_since_of(self.explorer))
        self.assertEqual((result.succeeded, result.repaired, result.failed), (1, 1, 0))
        self.assertTrue(result.resting_cleared)

        self.notifier.emit.assert_called_once_with(
            SPONSORSHIP_AUTO_CANCELED,
            {
                "to": "anna@test.com",
                "vars": {
                    "sponsor_username": "anna",
                    "explorer_name": "Erik the Red",
                    "explorer_username": "erik",
                    "resting_days": 90,
                },
            },
        )

    def testCancelWithTimeoutKeepsResting(self):
        self.gateway.cancel.side_effect = [None, timeout_error("sub_2")]
        resting_since = self.resting_since_of(self.explorer)

        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.CANCELED)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.PAUSED)
        self.assertEqual(self.resting_since_of(self.explorer), resting_since)
        self.assertEqual(result.failed, 1)
        self.assertFalse(result.resting_cleared)
        self.notifier.emit.assert_called_once()
        self.assertEqual(self.notifier.emit.call_args.args[1]["to"], "anna@test.com")

    def testPartialFailureCancelsAllButOne(self):
        sponsor_3 = make_sponsor("carla")
        s3 = make_sponsorship(sponsor_3, self.explorer, "sub_3", status=SponsorshipStatus.PAUSED)
        self.gateway.cancel.side_effect = [
            None,
            PaymentGatewayException("Your card was declined", error_code="card_declined"),
            None,
        ]

        self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        statuses = [self.status_of(s) for s in (self.s1, self.s2, s3)]
        self.assertEqual(statuses.count(SponsorshipStatus.CANCELED), 2)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.PAUSED)
        self.assertIsNotNone(self.resting_since_of(self.explorer))

    def testAllCanceledClearsResting(self):
        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(self.gateway.cancel.call_count, 2)
        self.assertIsNone(self.resting_since_of(self.explorer))
        self.assertEqual(result.succeeded, 2)
        self.assertEqual(self.notifier.emit.call_count, 2)

    def testEmptySetTouchesNothing(self):
        Sponsorship.objects.update(status=SponsorshipStatus.ACTIVE)
        resting_since = self.resting_since_of(self.explorer)

        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(result.total, 0)
        self.gateway.cancel.assert_not_called()
        self.notifier.emit.assert_not_called()
        self.assertEqual(self.resting_since_of(self.explorer), resting_since)

    def testSponsorWithoutEmailIsNotNotified(self):
        self.sponsor_1.email = ""
        self.sponsor_1.save()

        self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.notifier.emit.assert_called_once()
        self.assertEqual(self.notifier.emit.call_args.args[1]["to"], "bert@test.com")

    def testNotifierFailureDoesNotAffectOutcome(self):
        self.notifier.emit.side_effect = RuntimeError("smtp down")

        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(result.succeeded, 2)
        self.assertTrue(result.resting_cleared)

    def testStoreFailureCountsAsFailed(self):
        real_update = self.store.update_sponsorship_status

        def flaky_update(sponsorship_id, status):
            if sponsorship_id == self.s2.pk:
                raise DatabaseError("connection lost")
            return real_update(sponsorship_id, status)

        with mock.patch.object(self.store, "update_sponsorship_status", side_effect=flaky_update):
            result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(result.failed, 1)
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.CANCELED)
        self.assertIsNotNone(self.resting_since_of(self.explorer))


class PauseAllSponsorshipsTests(BillingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik", resting_days=31)
        self.sponsor = make_sponsor("anna")
        self.s1 = make_sponsorship(self.sponsor, self.explorer, "sub_1")
        self.s2 = make_sponsorship(self.sponsor, self.explorer, "sub_2")

    def testPausesActiveSubscriptions(self):
        result = self.service.pause_all_sponsorships(self.explorer.pk)

        self.assertEqual(result.succeeded, 2)
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.PAUSED)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.PAUSED)
        self.gateway.pause.assert_has_calls([mock.call("sub_1"), mock.call("sub_2")])

    def testNotRestingAbortsBeforeAnyCall(self):
        Explorer.objects.filter(pk=self.explorer.pk).update(resting_since=None)

        result = self.service.pause_all_sponsorships(self.explorer.pk)

        self.assertTrue(result.aborted)
        self.gateway.pause.assert_not_called()

    def testRestingClearedAfterPreflightPausesNothing(self):
        real_get = self.store.get_resting_since
        calls = []

        def cleared_after_preflight(explorer_id):
            calls.append(explorer_id)
            if len(calls) == 1:
                return real_get(explorer_id)
            return None

        with mock.patch.object(
            self.store, "get_resting_since", side_effect=cleared_after_preflight
        ):
            result = self.service.pause_all_sponsorships(self.explorer.pk)

        self.gateway.pause.assert_not_called()
        self.assertTrue(result.aborted)
        self.assertEqual(result.skipped, 2)
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.ACTIVE)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.ACTIVE)

    def testRestingClearedMidwayStopsRemainingRecords(self):
        def resume_event(subscription_id):
            Explorer.objects.filter(pk=self.explorer.pk).update(resting_since=None)

        self.gateway.pause.side_effect = resume_event

        result = self.service.pause_all_sponsorships(self.explorer.pk)

        self.assertEqual(self.gateway.pause.call_count, 1)
        self.assertEqual(result.succeeded, 1)
        self.assertEqual(result.skipped, 1)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.ACTIVE)

    def testFailedPauseLeavesRecordActive(self):
        self.gateway.pause.side_effect = [
            PaymentGatewayException("Rate limited", error_code="rate_limit"),
            None,
        ]

        result = self.service.pause_all_sponsorships(self.explorer.pk)

        self.assertEqual((result.succeeded, result.failed), (1, 1))
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.ACTIVE)
        self.assertEqual(self.status_of(self.s2), SponsorshipStatus.PAUSED)

    def testPauseDoesNotTouchResting(self):
        resting_since = self.resting_since_of(self.explorer)

        self.service.pause_all_sponsorships(self.explorer.pk)

        self.assertEqual(self.resting_since_of(self.explorer), resting_since)


class ResumeAllSponsorshipsTests(BillingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik")
        self.sponsor = make_sponsor("anna")
        self.s1 = make_sponsorship(
            self.sponsor, self.explorer, "sub_1", status=SponsorshipStatus.PAUSED
        )

    def testResumesPausedSubscription(self):
        result = self.service.resume_all_sponsorships(self.explorer.pk)

        self.gateway.resume.assert_called_once_with("sub_1")
        self.assertEqual(result.succeeded, 1)
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.ACTIVE)

    def testTransientFailureStaysPaused(self):
        self.gateway.resume.side_effect = timeout_error("sub_1")

        result = self.service.resume_all_sponsorships(self.explorer.pk)

        self.assertEqual(result.failed, 1)
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.PAUSED)


class RepairIdempotenceTests(BillingServiceTestCase):
    """Benign already-terminal errors always end in ``canceled``."""

    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik", resting_days=100)
        self.sponsor = make_sponsor("anna")

    def testRepairFromEveryOperation(self):
        error = already_canceled_error("sub_x")
        self.gateway.pause.side_effect = error
        self.gateway.resume.side_effect = error
        self.gateway.cancel.side_effect = error

        cases = [
            (SponsorshipStatus.ACTIVE, self.service.pause_all_sponsorships),
            (SponsorshipStatus.PAUSED, self.service.resume_all_sponsorships),
            (SponsorshipStatus.PAUSED, self.service.cancel_all_paused_sponsorships),
        ]
        for status, operation in cases:
            with self.subTest(operation=operation.__name__):
                sponsorship = make_sponsorship(self.sponsor, self.explorer, "sub_x", status=status)
                result = operation(self.explorer.pk)
                self.assertEqual(result.repaired, 1)
                self.assertEqual(self.status_of(sponsorship), SponsorshipStatus.CANCELED)
                Explorer.objects.filter(pk=self.explorer.pk).update(
                    resting_since=self.explorer.resting_since
                )

        self.notifier.emit.assert_not_called()

    def testRepeatedRepairKeepsCanceled(self):
        sponsorship = make_sponsorship(
            self.sponsor, self.explorer, "sub_x", status=SponsorshipStatus.PAUSED
        )
        self.gateway.cancel.side_effect = already_canceled_error("sub_x")

        for _ in range(3):
            self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(self.status_of(sponsorship), SponsorshipStatus.CANCELED)
        self.assertEqual(self.gateway.cancel.call_count, 1)

    def testMessageOnlyClassification(self):
        sponsorship = make_sponsorship(
            self.sponsor, self.explorer, "sub_x", status=SponsorshipStatus.PAUSED
        )
        self.gateway.cancel.side_effect = PaymentGatewayException(
            "This subscription has already been canceled."
        )

        result = self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.assertEqual(result.repaired, 1)
        self.assertEqual(self.status_of(sponsorship), SponsorshipStatus.CANCELED)


class ScopeFilteringTests(BillingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik", resting_days=100)
        self.sponsor = make_sponsor("anna")

    def make_out_of_scope(self, status):
        make_sponsorship(
            self.sponsor, self.explorer, "sub_once", status=status,
            type=SponsorshipType.ONE_TIME_PAYMENT,
        )
        make_sponsorship(self.sponsor, self.explorer, "sub_gone", status=SponsorshipStatus.CANCELED)
        make_sponsorship(
            self.sponsor, self.explorer, "sub_deleted", status=status,
            deleted_at=self.explorer.resting_since,
        )
        make_sponsorship(self.sponsor, self.explorer, "", status=status)
        make_sponsorship(self.sponsor, self.explorer, None, status=status)

    def testNoOperationSelectsOutOfScopeRecords(self):
        self.make_out_of_scope(SponsorshipStatus.ACTIVE)
        self.service.pause_all_sponsorships(self.explorer.pk)

        Sponsorship.objects.exclude(status=SponsorshipStatus.CANCELED).update(
            status=SponsorshipStatus.PAUSED
        )
        self.service.resume_all_sponsorships(self.explorer.pk)
        self.service.cancel_all_paused_sponsorships(self.explorer.pk)

        self.gateway.pause.assert_not_called()
        self.gateway.resume.assert_not_called()
        self.gateway.cancel.assert_not_called()
        self.notifier.emit.assert_not_called()


class ManualReconcileTests(BillingServiceTestCase):
    def setUp(self):
        super().setUp()
        self.explorer = make_explorer("erik", resting_days=45)
        self.s1 = make_sponsorship(
            make_sponsor("anna"), self.explorer, "sub_1", status=SponsorshipStatus.PAUSED
        )

    def testResumeRefusedWhileResting(self):
        with self.assertRaises(ExplorerStillRestingError):
            self.service.reconcile(self.explorer.pk, "resume")

        self.gateway.resume.assert_not_called()
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.PAUSED)

    def testResumeAllowedOnceRestingEnded(self):
        Explorer.objects.filter(pk=self.explorer.pk).update(resting_since=None)

        result = self.service.reconcile(self.explorer.pk, "resume")

        self.assertEqual(result.action, "resume")
        self.assertEqual(self.status_of(self.s1), SponsorshipStatus.ACTIVE)

    def testDispatchesByActionName(self):
        result = self.service.reconcile(self.explorer.pk, "cancel")

        self.assertEqual(result.action, "cancel")
        self.gateway.cancel.assert_called_once_with("sub_1")

    def testUnknownAction(self):
        with self.assertRaises(ValueError):
            self.service.reconcile(self.explorer.pk, "refund")
