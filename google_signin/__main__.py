"""
Run the server: python -m google_signin
"""

import uvicorn

from google_signin.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "google_signin.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
