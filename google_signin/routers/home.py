"""
Home Router - the single page of the app.

GET / renders either the "Sign in with Google" button or the signed-in
user's profile card, plus the one-shot flash message if there is one.
"""

import html
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from google_signin.deps import get_session_id, get_session_manager
from google_signin.schemas.identity import SessionView
from google_signin.services.session_manager import SessionManager


router = APIRouter(tags=["home"])


# ---------------------------------------------------------------------------
# PAGE HTML
# ---------------------------------------------------------------------------

PAGE_STYLE = """
    body {
        font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
        display: flex;
        justify-content: center;
        align-items: center;
        height: 100vh;
        margin: 0;
        background-color: #f5f5f5;
    }
    .card {
        background-color: white;
        padding: 32px;
        border-radius: 16px;
        width: 90%;
        max-width: 400px;
        text-align: center;
        box-shadow: 0 10px 25px rgba(0,0,0,0.1);
    }
    .google-btn {
        display: inline-block;
        background-color: #4285f4;
        color: white;
        padding: 12px 24px;
        border-radius: 50px;
        font-size: 16px;
        font-weight: 500;
        text-decoration: none;
    }
    .google-btn:hover { background-color: #357abd; }
    .profile-img {
        border-radius: 50%;
        width: 120px;
        height: 120px;
        object-fit: cover;
    }
    .success-message, .error-message {
        border-radius: 8px;
        padding: 10px;
        margin: 15px 0;
        font-size: 14px;
    }
    .success-message { color: #28a745; background-color: #d4edda; }
    .error-message { color: #dc3545; background-color: #f8d7da; }
    .user-name { font-size: 28px; font-weight: 600; color: #333; margin: 10px 0; }
"""


def render_flash(message: str) -> str:
    if not message:
        return ""
    css_class = "error-message" if "failed" in message.lower() else "success-message"
    return f'<p class="{css_class}">{html.escape(message)}</p>'


def render_page(view: SessionView, title: str = "Google Auth App") -> str:
    """
    Build the full HTML page for the current session state.

    All user-controlled values (name, picture URL, flash text) are escaped.
    """
    flash = render_flash(view.message)

    if view.user is not None:
        name = html.escape(view.user.display_name or "User")
        picture = html.escape(view.user.profile_picture_url or "", quote=True)
        email = html.escape(view.user.email or "")
        body = f"""
        <div class="card" id="profile">
            {flash}
            <img src="{picture}" alt="Profile" class="profile-img">
            <h2 class="user-name">{name}</h2>
            <p style="color: #666;">{email}</p>
            <a href="/logout" class="google-btn">Sign Out</a>
        </div>"""
    else:
        body = f"""
        <div class="card" id="login">
            {flash}
            <h2>Welcome Back!</h2>
            <p style="color: #666;">Please sign in to continue</p>
            <a href="/auth/google" class="google-btn">Sign in with Google</a>
        </div>"""

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <style>{PAGE_STYLE}</style>
</head>
<body>{body}
</body>
</html>"""


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Render the login or profile view; the flash message is consumed."""
    view = sessions.read(session_id)
    return HTMLResponse(content=render_page(view))
