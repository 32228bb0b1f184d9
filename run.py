"""Local development entry point.

Usage:
    python run.py

Loads .env, then serves the app on port 5000 with the reloader on.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from royalcrm import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
