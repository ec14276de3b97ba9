from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from control_plane.application.use_cases.provision_default_plan import DefaultPlanProvisioner
from control_plane.application.use_cases.reconcile_identity import ReconciliationEngine
from control_plane.domain.entities.link_event import ProviderRelinkedEvent
from control_plane.domain.entities.oauth_profile import OAuthProfile
from control_plane.domain.entities.plan import Plan
from control_plane.domain.entities.subscription import Subscription
from control_plane.domain.entities.user import UserIdentity
from control_plane.domain.exceptions import (
    IdentityConflictError,
    ReconciliationError,
    StoreUnavailableError,
)
from control_plane.domain.services.stream_key import is_valid_stream_key


NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    def now(self) -> datetime:
        return NOW


class FakeIdentityStore:
    def __init__(self):
        self.users: dict[int, UserIdentity] = {}
        self.link_events: list[ProviderRelinkedEvent] = []
        self._next_id = 1

    def seed(self, **fields) -> UserIdentity:
        defaults = {
            "id": self._next_id,
            "uuid": f"uuid-{self._next_id}",
            "email": None,
            "display_name": None,
            "avatar_url": None,
            "stream_key": f"{self._next_id:048x}",
            "oauth_provider": None,
            "oauth_provider_id": None,
            "oauth_email": None,
            "password_hash": None,
            "created_at": NOW,
        }
        defaults.update(fields)
        user = UserIdentity(**defaults)
        self.users[user.id] = user
        self._next_id = max(self._next_id, user.id) + 1
        return user

    def get_user_by_id(self, *, user_id: int) -> UserIdentity | None:
        return self.users.get(user_id)

    def find_by_provider(self, *, provider: str, provider_id: str) -> UserIdentity | None:
        for user in self.users.values():
            if user.oauth_provider == provider and user.oauth_provider_id == provider_id:
                return user
        return None

    def find_by_email(self, *, email: str) -> UserIdentity | None:
        for user in sorted(self.users.values(), key=lambda u: u.id):
            if user.email is not None and user.email.lower() == email.lower():
                return user
        return None

    def refresh_oauth_profile(self, *, user_id, display_name, avatar_url, oauth_email) -> UserIdentity:
        user = replace(
            self.users[user_id],
            display_name=display_name,
            avatar_url=avatar_url,
            oauth_email=oauth_email,
        )
        self.users[user_id] = user
        return user

    def link_provider(
        self,
        *,
        user_id,
        provider,
        provider_id,
        display_name,
        avatar_url,
        oauth_email,
        event,
    ) -> UserIdentity:
        user = replace(
            self.users[user_id],
            oauth_provider=provider,
            oauth_provider_id=provider_id,
            display_name=display_name,
            avatar_url=avatar_url,
            oauth_email=oauth_email,
        )
        self.users[user_id] = user
        self.link_events.append(event)
        return user

    def create_oauth_user(
        self,
        *,
        email,
        provider,
        provider_id,
        display_name,
        avatar_url,
        stream_key,
    ) -> UserIdentity:
        if self.find_by_provider(provider=provider, provider_id=provider_id) is not None:
            raise IdentityConflictError("duplicate provider id")
        return self.seed(
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
            stream_key=stream_key,
            oauth_provider=provider,
            oauth_provider_id=provider_id,
            oauth_email=email,
        )


class FakePlanStore:
    def __init__(self, plans: list[Plan] | None = None):
        self.plans = plans if plans is not None else [Plan(id=1, name="Free", description=None)]
        self.subscriptions: list[Subscription] = []

    def find_plan_by_name(self, *, name: str) -> Plan | None:
        matches = sorted((plan for plan in self.plans if plan.name == name), key=lambda p: p.id)
        return matches[0] if matches else None

    def create_subscription(
        self,
        *,
        user_id,
        plan_id,
        status,
        current_period_start,
        current_period_end,
    ) -> Subscription:
        subscription = Subscription(
            id=len(self.subscriptions) + 1,
            user_id=user_id,
            plan_id=plan_id,
            status=status,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
        )
        self.subscriptions.append(subscription)
        return subscription


class BrokenPlanStore(FakePlanStore):
    def create_subscription(self, **kwargs) -> Subscription:
        raise StoreUnavailableError("user_subscriptions is down")


class TimeoutPlanStore(FakePlanStore):
    def find_plan_by_name(self, *, name: str) -> Plan | None:
        raise RuntimeError("plan service timeout")


class UnreachableIdentityStore(FakeIdentityStore):
    def find_by_provider(self, *, provider: str, provider_id: str) -> UserIdentity | None:
        raise StoreUnavailableError("connection refused")


def _engine(identity_store, plan_store=None) -> ReconciliationEngine:
    clock = FixedClock()
    return ReconciliationEngine(
        identity_store=identity_store,
        plan_provisioner=DefaultPlanProvisioner(
            plan_store=plan_store if plan_store is not None else FakePlanStore(),
            clock=clock,
        ),
        clock=clock,
    )


def _profile(**overrides) -> OAuthProfile:
    fields = {
        "provider": "google",
        "provider_id": "g1",
        "email": "a@x.com",
        "display_name": "Ann",
        "avatar_url": None,
    }
    fields.update(overrides)
    return OAuthProfile(**fields)


def test_new_profile_creates_account_then_relogin_matches_same_user():
    store = FakeIdentityStore()
    engine = _engine(store)

    first = engine.reconcile(_profile())
    second = engine.reconcile(_profile())

    assert first.is_new_user is True
    assert first.account_linked is False
    assert len(first.user.stream_key) == 48
    assert is_valid_stream_key(first.user.stream_key)
    assert second.user.id == first.user.id
    assert second.is_new_user is False
    assert second.account_linked is False
    assert len(store.users) == 1


def test_provider_id_match_wins_over_changed_email():
    store = FakeIdentityStore()
    existing = store.seed(
        email="a@x.com",
        display_name="Old",
        oauth_provider="twitch",
        oauth_provider_id="T1",
        oauth_email="a@x.com",
    )
    other = store.seed(email="b@x.com", password_hash="hash")
    engine = _engine(store)

    result = engine.reconcile(
        _profile(
            provider="twitch",
            provider_id="T1",
            email="b@x.com",
            display_name="New",
            avatar_url="https://cdn.example/new.png",
        )
    )

    assert result.outcome == "matched"
    assert result.user.id == existing.id
    assert result.user.display_name == "New"
    assert result.user.avatar_url == "https://cdn.example/new.png"
    assert result.user.oauth_email == "b@x.com"
    assert result.user.email == "a@x.com"
    assert store.users[other.id].oauth_provider is None
    assert len(store.users) == 2


def test_cross_provider_login_relinks_existing_account_by_email():
    store = FakeIdentityStore()
    engine = _engine(store)
    created = engine.reconcile(_profile(provider="google", provider_id="g1", email="a@x.com"))

    result = engine.reconcile(_profile(provider="twitch", provider_id="t9", email="a@x.com"))

    assert result.user.id == created.user.id
    assert result.account_linked is True
    assert result.is_new_user is False
    assert store.users[created.user.id].oauth_provider == "twitch"
    assert store.users[created.user.id].oauth_provider_id == "t9"

    event = store.link_events[-1]
    assert event.previous_provider == "google"
    assert event.previous_provider_id == "g1"
    assert event.new_provider == "twitch"
    assert event.displaces_provider is True


def test_password_account_is_linked_to_first_oauth_provider():
    store = FakeIdentityStore()
    password_user = store.seed(email="a@x.com", password_hash="bcrypt-hash")
    engine = _engine(store)

    result = engine.reconcile(_profile(provider="twitch", provider_id="t1", email="A@X.com"))

    assert result.user.id == password_user.id
    assert result.account_linked is True
    assert store.users[password_user.id].oauth_provider == "twitch"
    assert store.users[password_user.id].password_hash == "bcrypt-hash"
    assert store.link_events[-1].previous_provider is None
    assert store.link_events[-1].displaces_provider is False


def test_new_account_receives_one_active_thirty_day_subscription():
    store = FakeIdentityStore()
    plans = FakePlanStore(
        plans=[
            Plan(id=7, name="Free", description=None),
            Plan(id=3, name="Free", description="legacy"),
            Plan(id=9, name="Pro", description=None),
        ]
    )
    engine = _engine(store, plans)

    result = engine.reconcile(_profile())

    assert len(plans.subscriptions) == 1
    subscription = plans.subscriptions[0]
    assert subscription.user_id == result.user.id
    assert subscription.plan_id == 3
    assert subscription.status == "active"
    assert subscription.current_period_start == NOW
    assert subscription.current_period_end - subscription.current_period_start == timedelta(days=30)


def test_existing_and_linked_accounts_do_not_get_subscriptions():
    store = FakeIdentityStore()
    store.seed(email="a@x.com", password_hash="hash")
    plans = FakePlanStore()
    engine = _engine(store, plans)

    engine.reconcile(_profile(provider="twitch", provider_id="t1"))
    engine.reconcile(_profile(provider="twitch", provider_id="t1"))

    assert plans.subscriptions == []


def test_missing_free_plan_does_not_block_account_creation():
    store = FakeIdentityStore()
    plans = FakePlanStore(plans=[])
    engine = _engine(store, plans)

    result = engine.reconcile(_profile())

    assert result.is_new_user is True
    assert result.user.id in store.users
    assert plans.subscriptions == []


def test_subscription_insert_failure_does_not_block_account_creation():
    store = FakeIdentityStore()
    engine = _engine(store, BrokenPlanStore())

    result = engine.reconcile(_profile())

    assert result.is_new_user is True
    assert store.users[result.user.id].oauth_provider_id == "g1"


def test_unexpected_plan_store_error_does_not_block_account_creation():
    store = FakeIdentityStore()
    plans = TimeoutPlanStore()
    engine = _engine(store, plans)

    result = engine.reconcile(_profile())

    assert result.is_new_user is True
    assert len(store.users) == 1
    assert plans.subscriptions == []


def test_profile_without_email_skips_linking_and_creates_account():
    store = FakeIdentityStore()
    store.seed(email="a@x.com", password_hash="hash")
    engine = _engine(store)

    result = engine.reconcile(_profile(email=None))

    assert result.is_new_user is True
    assert result.user.email is None
    assert len(store.users) == 2


def test_insert_conflict_is_replayed_as_provider_match():
    class RacingIdentityStore(FakeIdentityStore):
        def __init__(self):
            super().__init__()
            self.lookups = 0

        def find_by_provider(self, *, provider: str, provider_id: str):
            self.lookups += 1
            if self.lookups == 1:
                return None
            return super().find_by_provider(provider=provider, provider_id=provider_id)

        def create_oauth_user(self, **kwargs):
            self.seed(
                email=kwargs["email"],
                stream_key=kwargs["stream_key"],
                oauth_provider=kwargs["provider"],
                oauth_provider_id=kwargs["provider_id"],
            )
            raise IdentityConflictError("lost the race")

    store = RacingIdentityStore()
    plans = FakePlanStore()
    engine = _engine(store, plans)

    result = engine.reconcile(_profile())

    assert result.outcome == "matched"
    assert result.is_new_user is False
    assert len(store.users) == 1
    assert plans.subscriptions == []


def test_conflict_without_visible_winner_raises_reconciliation_error():
    class GhostConflictStore(FakeIdentityStore):
        def create_oauth_user(self, **kwargs):
            raise IdentityConflictError("conflict on another constraint")

    engine = _engine(GhostConflictStore())

    with pytest.raises(ReconciliationError):
        engine.reconcile(_profile())


def test_unreachable_store_surfaces_as_reconciliation_error():
    engine = _engine(UnreachableIdentityStore())

    with pytest.raises(ReconciliationError):
        engine.reconcile(_profile())
