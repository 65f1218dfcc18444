from datetime import timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from explorers.models import Explorer
from sponsorships.models import Sponsorship, SponsorshipStatus, SponsorshipType


def make_explorer(username, resting_days=None, name=""):
    user = User.objects.create_user(
        username=username, password="Musterpassword", email=f"{username}@test.com"
    )
    resting_since = None
    if resting_days is not None:
        resting_since = timezone.now() - timedelta(days=resting_days)
    return Explorer.objects.create(user=user, name=name, resting_since=resting_since)


def make_sponsor(username, email=None):
    return User.objects.create_user(
        username=username,
        password="Musterpassword",
        email=f"{username}@test.com" if email is None else email,
    )


def make_sponsorship(sponsor, explorer, subscription_id, status=SponsorshipStatus.ACTIVE, **extra):
    defaults = {
        "type": SponsorshipType.SUBSCRIPTION,
        "amount": 500,
    }
    defaults.update(extra)
    return Sponsorship.objects.create(
        sponsor=sponsor,
        sponsored_explorer=explorer,
        status=status,
        stripe_subscription_id=subscription_id,
        **defaults,
    )
