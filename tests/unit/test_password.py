# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing utilities.

Tests the PasswordHasher class and convenience functions.
"""

import pytest

from src.domains.auth.password import (
    MAX_PASSWORD_BYTES,
    PasswordHasher,
    hash_password,
    verify_password,
)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hasher.hash("secret1")

        assert hashed.startswith("$2b$04$")
        assert len(hashed) == 60

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        """Test that the same password hashes differently each time."""
        assert hasher.hash("secret1") != hasher.hash("secret1")

    def test_verify(self, hasher: PasswordHasher) -> None:
        """Test verification against the right and wrong password."""
        hashed = hasher.hash("correct_password")

        assert hasher.verify("correct_password", hashed) is True
        assert hasher.verify("wrong_password", hashed) is False

    @pytest.mark.parametrize(
        ("password", "password_hash"),
        [
            ("", "$2b$04$abcdefghijklmnopqrstuu"),
            ("password", ""),
            ("password", "not_a_valid_bcrypt_hash"),
        ],
    )
    def test_verify_rejects_bad_input(
        self, hasher: PasswordHasher, password: str, password_hash: str
    ) -> None:
        """Test that empty values and malformed hashes never verify."""
        assert hasher.verify(password, password_hash) is False

    def test_hash_empty_password_raises_error(self, hasher: PasswordHasher) -> None:
        """Test that hashing empty password raises ValueError."""
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hasher.hash("")

    def test_hash_rejects_overlong_password(self, hasher: PasswordHasher) -> None:
        """Test that input bcrypt would truncate is refused."""
        with pytest.raises(ValueError, match="cannot exceed"):
            hasher.hash("a" * (MAX_PASSWORD_BYTES + 1))

    def test_hash_accepts_maximum_length(self, hasher: PasswordHasher) -> None:
        """Test the 72-byte boundary."""
        password = "a" * MAX_PASSWORD_BYTES

        assert hasher.verify(password, hasher.hash(password))

    def test_unicode_password(self, hasher: PasswordHasher) -> None:
        """Test that unicode passwords work correctly."""
        password = "şifre_parola_密码"

        assert hasher.verify(password, hasher.hash(password))

    def test_needs_rehash(self) -> None:
        """Test that needs_rehash compares cost factors."""
        old_hash = PasswordHasher(rounds=4).hash("password")

        assert PasswordHasher(rounds=4).needs_rehash(old_hash) is False
        assert PasswordHasher(rounds=5).needs_rehash(old_hash) is True

    def test_needs_rehash_edge_cases(self, hasher: PasswordHasher) -> None:
        """Test empty and malformed hashes."""
        assert hasher.needs_rehash("") is False
        assert hasher.needs_rehash("plaintext") is True

    def test_rounds_property(self) -> None:
        """Test that the configured cost is exposed."""
        assert PasswordHasher(rounds=6).rounds == 6


class TestConvenienceFunctions:
    """Tests for module-level convenience functions."""

    def test_hash_and_verify(self) -> None:
        """Test hash_password and verify_password together."""
        hashed = hash_password("test_password")

        assert hashed.startswith("$2b$12$")
        assert verify_password("test_password", hashed) is True
        assert verify_password("wrong_password", hashed) is False
