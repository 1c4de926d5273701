"""
Tests for tokens, password hashing and actor scoping
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException

from placement_api.core.security import (
    ActorContext,
    actor_from_claims,
    create_access_token,
    create_admin_token,
    create_student_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from placement_api.utils.constants import BRANCH_ADMIN, MAIN_ADMIN, STUDENT


class TestActorContext:

    def test_main_admin_is_unrestricted(self):
        actor = ActorContext(role=MAIN_ADMIN, subject_id="1", branch="CSE")
        assert actor.is_admin and actor.is_main_admin
        assert actor.branch_scope is None
        assert actor.can_access_branch("ECE")

    def test_branch_admin_is_scoped(self):
        actor = ActorContext(role=BRANCH_ADMIN, subject_id="2", branch="CSE")
        assert actor.is_admin and not actor.is_main_admin
        assert actor.branch_scope == "CSE"
        assert actor.can_access_branch("CSE")
        assert not actor.can_access_branch("ECE")

    def test_records_without_branch_stay_accessible(self):
        actor = ActorContext(role=BRANCH_ADMIN, subject_id="2", branch="CSE")
        assert actor.can_access_branch(None)

    def test_student(self):
        actor = ActorContext(role=STUDENT, subject_id="3", branch="IT")
        assert actor.is_student and not actor.is_admin
        assert actor.branch_scope == "IT"


class TestTokens:

    def test_admin_token_round_trip(self):
        claims = decode_token(create_admin_token("a-1", BRANCH_ADMIN, "ece@college.edu", "ECE"))
        actor = actor_from_claims(claims)
        assert actor == ActorContext(role=BRANCH_ADMIN, subject_id="a-1", branch="ECE", email="ece@college.edu")

    def test_student_token_round_trip(self):
        actor = actor_from_claims(decode_token(create_student_token("s-1", "CSE")))
        assert actor.role == STUDENT
        assert actor.subject_id == "s-1"
        assert actor.branch == "CSE"

    def test_expired_token(self):
        token = create_access_token({"sub": "a-1", "role": MAIN_ADMIN}, timedelta(seconds=-5))
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize(
        "claims",
        [{"sub": "a-1", "role": "superuser"}, {"role": MAIN_ADMIN}, {"sub": "a-1"}],
    )
    def test_bad_claims(self, claims):
        with pytest.raises(HTTPException) as exc_info:
            actor_from_claims(claims)
        assert exc_info.value.status_code == 401


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("15082002")
        assert hashed != "15082002"
        assert verify_password("15082002", hashed)
        assert not verify_password("15082003", hashed)

    def test_malformed_hash(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")
        assert not verify_password("anything", "")
