"""Tests for password strength rules and generated credentials."""

import re

import pytest

from classconnect.application.services.password_policy import (
    MIN_PASSWORD_LENGTH,
    generate_password,
    generate_unguessable_password,
    validate_strength,
)


class TestValidateStrength:
    """Every unmet rule is reported, in rule order."""

    def test_strong_password_passes(self) -> None:
        result = validate_strength("Jane@2024")
        assert result.is_valid is True
        assert result.errors == ()

    def test_all_failures_listed(self) -> None:
        result = validate_strength("abc")
        assert result.is_valid is False
        assert len(result.errors) == 4
        assert "at least 8 characters" in result.errors[0]
        assert any("uppercase" in e for e in result.errors)
        assert any("number" in e for e in result.errors)
        assert any("special character" in e for e in result.errors)

    def test_none_is_treated_as_empty(self) -> None:
        result = validate_strength(None)
        assert result.is_valid is False
        assert len(result.errors) == 5

    def test_exact_minimum_length_is_enough(self) -> None:
        password = "Ab1!" + "x" * (MIN_PASSWORD_LENGTH - 4)
        assert len(password) == MIN_PASSWORD_LENGTH
        assert validate_strength(password).is_valid is True

    @pytest.mark.parametrize("special", list("!@#$%&*+"))
    def test_each_listed_special_character_counts(self, special: str) -> None:
        assert validate_strength(f"Abcdef1{special}").is_valid is True

    def test_unlisted_special_character_does_not_count(self) -> None:
        result = validate_strength("Abcdef1^")
        assert result.is_valid is False
        assert len(result.errors) == 1
        assert "special character" in result.errors[0]


class TestGeneratePassword:
    """Generated rep passwords look like FirstName@NNNN and pass the policy."""

    def test_uses_capitalised_first_name(self) -> None:
        password = generate_password("jane doe")
        assert re.fullmatch(r"Jane@\d{4}", password)

    def test_short_name_is_padded(self) -> None:
        password = generate_password("Al")
        assert password.startswith("Al")
        assert validate_strength(password).is_valid is True

    def test_non_letters_are_dropped(self) -> None:
        password = generate_password("o'brien")
        assert re.fullmatch(r"Obrien@\d{4}", password)

    @pytest.mark.parametrize("seed", [None, "", "   ", "42", "X"])
    def test_missing_or_unusable_seed_still_valid(self, seed) -> None:
        password = generate_password(seed)
        assert validate_strength(password).is_valid is True

    def test_unguessable_password_is_strong_and_random(self) -> None:
        first = generate_unguessable_password()
        second = generate_unguessable_password()
        assert first != second
        assert len(first) > 40
        assert validate_strength(first).is_valid is True
