"""
Tests for the page renderer.
"""

from google_signin.routers.home import render_flash, render_page
from google_signin.schemas.identity import SessionUser, SessionView


def _user(**overrides) -> SessionUser:
    values = {
        "subject_id": "g-123",
        "display_name": "Ada Lovelace",
        "email": "ada@example.com",
        "profile_picture_url": "https://lh3.googleusercontent.com/a/ada",
    }
    values.update(overrides)
    return SessionUser(**values)


class TestRenderPage:
    """Tests for the login and profile views."""

    def test_login_view(self):
        page = render_page(SessionView())

        assert 'id="login"' in page
        assert "Sign in with Google" in page
        assert 'id="profile"' not in page

    def test_profile_view(self):
        page = render_page(SessionView(user=_user()))

        assert 'id="profile"' in page
        assert "Ada Lovelace" in page
        assert 'src="https://lh3.googleusercontent.com/a/ada"' in page
        assert 'href="/logout"' in page

    def test_user_values_are_escaped(self):
        """Should not let profile data inject markup."""
        page = render_page(SessionView(user=_user(
            display_name="<script>alert(1)</script>",
            profile_picture_url='x" onerror="alert(1)',
        )))

        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;" in page
        assert 'onerror="alert(1)' not in page

    def test_missing_name_falls_back(self):
        page = render_page(SessionView(user=_user(display_name=None)))

        assert "User" in page


class TestRenderFlash:
    """Tests for the flash message block."""

    def test_no_message(self):
        assert render_flash("") == ""

    def test_success_style(self):
        assert 'class="success-message"' in render_flash("Authentication successful")

    def test_failure_style(self):
        flash = render_flash("Authentication failed: <b>Bad</b>")

        assert 'class="error-message"' in flash
        assert "&lt;b&gt;Bad&lt;/b&gt;" in flash
