"""Profile reads, edits, roles and generated avatars."""

import pytest
from sqlalchemy.exc import OperationalError

from config import AVATAR_BASE_URL
from core.exceptions import PolicyViolationError, ProfileNotFoundError, ValidationError
from utils.profile_manager import (
    ProfileManager,
    avatar_seed_from_url,
    avatar_url_for_seed,
    random_avatar_seed,
)


def test_avatar_seed_survives_url_encoding():
    url = avatar_url_for_seed("a b&c")
    assert url.startswith(AVATAR_BASE_URL)
    assert avatar_seed_from_url(url, default="fallback") == "a b&c"


@pytest.mark.parametrize("url", [None, "", "https://img.example.com/me.png"])
def test_avatar_seed_defaults_without_seed(url):
    assert avatar_seed_from_url(url, default="user-1") == "user-1"


def test_random_avatar_seeds_differ():
    assert random_avatar_seed() != random_avatar_seed()


def test_registration_creates_profile(db, make_user):
    user = make_user("alice", full_name="Alice Liddell")
    profile = ProfileManager(db).get_profile(user)

    assert profile.user_id == user
    assert profile.full_name == "Alice Liddell"
    assert profile.role == "user"
    assert profile.stats.model_dump() == {"completed": 0, "enrolled": 0, "uploads": 0}


def test_get_missing_profile(db):
    with pytest.raises(ProfileNotFoundError):
        ProfileManager(db).get_profile("nobody")


def test_owner_updates_profile(db, make_user):
    user = make_user("alice")
    manager = ProfileManager(db)

    assert manager.current_avatar_seed(user) == user

    profile = manager.update_profile(user, user, full_name="  Alice  ", avatar_seed="moon")

    assert profile.full_name == "Alice"
    assert profile.avatar_url == avatar_url_for_seed("moon")
    assert manager.current_avatar_seed(user) == "moon"


def test_blank_full_name_clears_it(db, make_user):
    user = make_user("alice", full_name="Alice")
    profile = ProfileManager(db).update_profile(user, user, full_name="   ")
    assert profile.full_name is None


def test_blank_avatar_seed_is_rejected(db, make_user):
    user = make_user("alice")
    with pytest.raises(ValidationError):
        ProfileManager(db).update_profile(user, user, avatar_seed="  ")


def test_non_owner_cannot_update_profile(db, make_user):
    alice = make_user("alice", full_name="Alice")
    bob = make_user("bob")
    manager = ProfileManager(db)

    with pytest.raises(PolicyViolationError):
        manager.update_profile(alice, bob, full_name="Hacked")
    with pytest.raises(PolicyViolationError):
        manager.update_profile(alice, None, full_name="Hacked")

    db.expire_all()
    assert manager.get_profile(alice).full_name == "Alice"


def test_set_role_requires_admin(db, make_user):
    user = make_user("alice")
    manager = ProfileManager(db)

    with pytest.raises(PolicyViolationError):
        manager.set_role(user, "premium", actor_role="user")
    with pytest.raises(PolicyViolationError):
        manager.set_role(user, "premium", actor_role=None)

    assert manager.set_role(user, "premium", actor_role="admin").role == "premium"


def test_set_role_validates_input(db, make_user):
    user = make_user("alice")
    manager = ProfileManager(db)
    with pytest.raises(ValidationError):
        manager.set_role(user, "superuser", actor_role="admin")
    with pytest.raises(ProfileNotFoundError):
        manager.set_role("nobody", "premium", actor_role="admin")


def test_profile_edits_leave_counters_alone(db, make_user, make_course, stats_of):
    user = make_user("alice")
    make_course(user)
    before = stats_of(user)

    ProfileManager(db).update_profile(user, user, full_name="Alice", avatar_seed="sun")

    assert stats_of(user) == before


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_failed_profile_commit_is_rolled_back(db, make_user, monkeypatch):
    user = make_user("alice", full_name="Alice")
    manager = ProfileManager(db)

    with monkeypatch.context() as m:
        m.setattr(db, "commit", _failing_commit)
        with pytest.raises(OperationalError):
            manager.update_profile(user, user, full_name="Mallory")

    assert manager.get_profile(user).full_name == "Alice"


def test_failed_role_commit_is_rolled_back(db, make_user, monkeypatch):
    user = make_user("alice")
    manager = ProfileManager(db)

    with monkeypatch.context() as m:
        m.setattr(db, "commit", _failing_commit)
        with pytest.raises(OperationalError):
            manager.set_role(user, "premium", actor_role="admin")

    assert manager.get_profile(user).role == "user"


def test_rejected_seed_leaves_name_unchanged(db, make_user):
    user = make_user("alice", full_name="Alice")
    manager = ProfileManager(db)

    with pytest.raises(ValidationError):
        manager.update_profile(user, user, full_name="Bob", avatar_seed=" ")
    db.commit()

    db.expire_all()
    assert manager.get_profile(user).full_name == "Alice"
