"""
WSGI entry point: ``gunicorn app:app`` or ``python app.py``
"""
import os

from cleansong import create_app

app = create_app(os.getenv("FLASK_ENV", "default"))


if __name__ == "__main__":
    port = int(os.getenv("PORT", "3000"))
    app.logger.info("Server running at http://localhost:%d", port)
    app.run(host="0.0.0.0", port=port)
