"""Test input validators and sanitizers."""

import pytest

from shortlinks.core.validators import (
    sanitize_short_code,
    validate_category_fields,
    validate_email,
    validate_target_url,
)


class TestTargetURLValidation:

    def test_valid_urls(self):
        valid_urls = [
            "http://example.com",
            "https://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "HTTPS://EXAMPLE.COM",
            "  https://example.com  ",
        ]
        for url in valid_urls:
            assert validate_target_url(url) == [], f"Should be valid: {url}"

    def test_invalid_urls(self):
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",
            "example.com",
            "",
            "http://",
            "javascript:alert(1)",
            "http://example.com:abc/",
            "http://example.com:99999/",
            "https://exa mple.com/",
            "https://example.com/\ud800",
            None,
        ]
        for url in invalid_urls:
            assert validate_target_url(url), f"Should be invalid: {url}"

    def test_length_boundary(self):
        prefix = "https://example.com/"
        at_limit = prefix + "a" * (2048 - len(prefix))

        assert validate_target_url(at_limit) == []
        assert validate_target_url(at_limit + "a") == [
            "URL is too long (maximum 2048 characters)"
        ]

    def test_reports_every_violation(self):
        errors = validate_target_url("ftp://" + "a" * 2048)

        assert "URL is too long (maximum 2048 characters)" in errors
        assert "URL must use HTTP or HTTPS protocol" in errors

    def test_missing_host_and_scheme_are_separate_rules(self):
        assert validate_target_url("https://") == ["URL must have a valid hostname"]
        assert "URL must be absolute (include http:// or https://)" in validate_target_url(
            "/relative/path"
        )

    def test_malformed_authority(self):
        assert validate_target_url("http://example.com:abc/") == ["URL is not valid"]
        assert validate_target_url("http://example.com:99999/") == ["URL is not valid"]
        assert validate_target_url("https://exa mple.com/") == [
            "URL host cannot contain whitespace or control characters"
        ]
        assert validate_target_url("http://example.com:65535/") == []

    def test_unencodable_text(self):
        assert validate_target_url("https://example.com/\ud800") == [
            "URL contains characters that cannot be encoded"
        ]


class TestShortCodeSanitation:

    @pytest.mark.parametrize("code", ["abc123", "ABCxyz", "0", "  aB3dE9 "])
    def test_accepts_base62(self, code):
        assert sanitize_short_code(code) == code.strip()

    @pytest.mark.parametrize("code", ["", "abc-12", "abc 12", "a/b", "x" * 21, "%2e%2e", None])
    def test_rejects_everything_else(self, code):
        assert sanitize_short_code(code) is None


class TestEmailValidation:

    def test_valid(self):
        assert validate_email("alice@example.com") == []

    @pytest.mark.parametrize("email", ["", "alice", "alice@", "@example.com", "a b@c.de"])
    def test_invalid(self, email):
        assert validate_email(email)

    def test_too_long(self):
        email = "a" * 250 + "@x.com"
        assert "Email is too long (maximum 255 characters)" in validate_email(email)


class TestCategoryValidation:

    def test_valid(self):
        assert validate_category_fields("Work", "Job links", "briefcase", "primary") == []

    def test_limits(self):
        assert validate_category_fields("n" * 100) == []
        assert validate_category_fields("n" * 101)
        assert validate_category_fields("Work", description="d" * 500) == []
        assert validate_category_fields("Work", description="d" * 501)
        assert validate_category_fields("Work", color="c" * 51)

    def test_blank_name(self):
        assert validate_category_fields("   ") == ["Category name cannot be empty"]
