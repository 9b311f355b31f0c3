"""Course visibility and ownership predicates."""

import pytest

from core import policies
from core.exceptions import PolicyViolationError
from models.course import CourseModel
from utils.course_manager import CourseManager


def _course(access_type="public", is_approved=True, uploader_id="owner"):
    return CourseModel(
        title="T",
        content_type="text",
        content_text="body",
        uploader_id=uploader_id,
        access_type=access_type,
        is_approved=is_approved,
    )


@pytest.mark.parametrize(
    "access_type, is_approved, viewer_id, viewer_role, visible",
    [
        ("public", True, None, None, True),
        ("public", False, None, None, False),
        ("premium", True, None, None, False),
        ("premium", True, "someone", "user", False),
        ("premium", True, "someone", "premium", True),
        ("premium", True, "someone", "admin", True),
        ("premium", False, "someone", "premium", False),
        ("private", True, "someone", "admin", False),
        ("private", True, "owner", "user", True),
        ("premium", False, "owner", "user", True),
    ],
)
def test_can_view_course(access_type, is_approved, viewer_id, viewer_role, visible):
    course = _course(access_type=access_type, is_approved=is_approved)
    assert policies.can_view_course(course, viewer_id, viewer_role) is visible


def test_visibility_clause_matches_python_predicate(db, make_user, make_course):
    owner = make_user("owner")
    regular = make_user("regular")
    premium = make_user("premium_user", role="premium")
    public_id = make_course(owner, "Public")
    premium_id = make_course(owner, "Premium", access_type="premium")
    private_id = make_course(owner, "Private", access_type="private")
    hidden_id = make_course(owner, "Unapproved")
    db.get(CourseModel, hidden_id).is_approved = False
    db.commit()

    def visible_ids(viewer_id, role):
        rows = (
            db.query(CourseModel.id)
            .filter(policies.course_visibility_clause(viewer_id, role))
            .all()
        )
        return {row.id for row in rows}

    assert visible_ids(None, None) == {public_id}
    assert visible_ids(regular, "user") == {public_id}
    assert visible_ids(premium, "premium") == {public_id, premium_id}
    assert visible_ids(owner, "user") == {public_id, premium_id, private_id, hidden_id}


def test_browse_listing_hides_unapproved_even_for_uploader(db, make_user, make_course):
    owner = make_user("owner")
    hidden_id = make_course(owner, "Unapproved")
    db.get(CourseModel, hidden_id).is_approved = False
    db.commit()

    manager = CourseManager(db)
    assert manager.list_visible_courses(viewer_id=owner) == []
    assert manager.get_course(hidden_id, owner).id == hidden_id


def test_ensure_self_rejects_other_users():
    policies.ensure_self("alice", "alice", "enroll")
    with pytest.raises(PolicyViolationError):
        policies.ensure_self("alice", "bob", "enroll")
    with pytest.raises(PolicyViolationError):
        policies.ensure_self("alice", None, "enroll")


def test_ensure_course_owner():
    course = _course(uploader_id="owner")
    policies.ensure_course_owner(course, "owner")
    with pytest.raises(PolicyViolationError):
        policies.ensure_course_owner(course, "intruder")
