"""Local development entry point.

Usage:
    python run.py

Loads .env, builds the app for FLASK_ENV (default: development) and
serves it on port 5001. The postcard job runs in a background thread of
this same process.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from postcards import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
