"""Local launcher for the sync web app. The CLI lives in ``mediasheet-sync``."""
import os

from mediasheet.main import app


def _port() -> int:
    try:
        return int(os.environ.get("PORT", "8080"))
    except ValueError:
        return 8080


if __name__ == "__main__":
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=_port(),
        debug=os.environ.get("FLASK_DEBUG") == "1",
    )
