"""
认证单元测试：密码哈希 / JWT 签发与校验 / 注册 / 登录 / 个人资料
"""

import jwt
import pytest
from sqlalchemy import func
from sqlmodel import select

from src.auth.password import hash_password, verify_password
from src.auth.service import AuthService
from src.auth.session import ALGORITHM, create_token, decode_token, verify_token
from src.db.models import User
from src.errors import AuthenticationError, ConflictError, PermissionDeniedError, ValidationError


class TestPassword:
    def test_hash_roundtrip(self):
        h = hash_password("s3cret", rounds=4)
        assert h != "s3cret"
        assert verify_password("s3cret", h)
        assert not verify_password("wrong", h)

    def test_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")

    def test_malformed_hash_is_false(self):
        assert verify_password("x", "not-a-bcrypt-hash") is False
        assert verify_password("x", "") is False


class TestToken:
    def test_claims(self):
        token = create_token(7, "a@example.edu", "author", "Alice")
        claims = decode_token(token)
        assert claims["id"] == 7
        assert claims["sub"] == "7"
        assert claims["role"] == "author"
        assert claims["email"] == "a@example.edu"
        assert verify_token(token) == 7

    def test_expires_after_24_hours(self):
        claims = decode_token(create_token(7, "a@example.edu", "author", "Alice"))
        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_expired(self):
        token = create_token(7, "a@example.edu", "author", "Alice", expire_hours=-1)
        assert decode_token(token) is None

    def test_wrong_signature(self):
        forged = jwt.encode({"id": 1, "role": "admin"}, "another-secret", algorithm=ALGORITHM)
        assert decode_token(forged) is None

    def test_garbage(self):
        assert decode_token("") is None
        assert decode_token("abc.def.ghi") is None
        assert verify_token("nope") is None


class TestRegister:
    def test_defaults(self, db, reference):
        auth = AuthService(db)
        user_id = auth.register("Carol", "carol@example.edu", "pw123456")
        profile = auth.get_profile(user_id)
        assert profile["role"] == "author"
        assert profile["designation"] == "student"
        assert "password_hash" not in profile

    def test_email_is_case_insensitive_and_unique(self, db, author):
        with pytest.raises(ConflictError):
            AuthService(db).register("Alice Again", "ALICE@Example.edu", "pw")
        with db.session() as session:
            assert session.exec(select(func.count()).select_from(User)).one() == 1

    def test_missing_fields(self, db):
        with pytest.raises(ValidationError):
            AuthService(db).register("", "x@example.edu", "pw")
        with pytest.raises(ValidationError):
            AuthService(db).register("X", "x@example.edu", "")

    def test_admin_self_registration_blocked(self, db):
        with pytest.raises(PermissionDeniedError):
            AuthService(db).register("Mallory", "m@example.edu", "pw", role="admin")

    def test_unknown_role_or_designation(self, db):
        with pytest.raises(ValidationError):
            AuthService(db).register("X", "x@example.edu", "pw", role="editor")
        with pytest.raises(ValidationError):
            AuthService(db).register("X", "x@example.edu", "pw", designation="alumni")

    def test_unknown_department(self, db, reference):
        with pytest.raises(ValidationError):
            AuthService(db).register("X", "x@example.edu", "pw", department_id=9999)

    def test_create_admin(self, db):
        auth = AuthService(db)
        profile = auth.get_profile(auth.create_admin("Root", "root@example.edu", "pw"))
        assert profile["role"] == "admin"


class TestLogin:
    def test_success(self, db, author, reference):
        result = AuthService(db).login("Alice@Example.edu", "secret123")
        assert decode_token(result["token"])["id"] == author.id
        user = result["user"]
        assert user["email"] == "alice@example.edu"
        assert user["department_name"] == "Department of Computer Science and Engineering (CSE)"
        assert user["faculty_name"] == "School of Data & Sciences"
        assert "password_hash" not in user

    def test_wrong_password(self, db, author):
        with pytest.raises(AuthenticationError):
            AuthService(db).login("alice@example.edu", "wrong")

    def test_unknown_email(self, db):
        with pytest.raises(AuthenticationError):
            AuthService(db).login("ghost@example.edu", "secret123")


class TestProfile:
    def test_update(self, db, author, reference):
        profile = AuthService(db).update_profile(
            author.id, "Alice R.", reference["pharmacy"], reference["pharmacy_school"], "faculty",
        )
        assert profile["name"] == "Alice R."
        assert profile["department_name"] == "Department of Pharmacy"
        assert profile["designation"] == "faculty"
        assert profile["email"] == "alice@example.edu"

    def test_update_requires_all_fields(self, db, author, reference):
        with pytest.raises(ValidationError):
            AuthService(db).update_profile(author.id, "Alice", None, reference["data_sciences"], "student")

    def test_update_rejects_unknown_faculty(self, db, author, reference):
        with pytest.raises(ValidationError):
            AuthService(db).update_profile(author.id, "Alice", reference["cse"], 9999, "student")
