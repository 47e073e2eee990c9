import os

# Settings are read once and cached, so seed them before any app import
os.environ.setdefault("TMDB_API_KEY", "test-tmdb-key")
os.environ.setdefault("GOOGLE_DRIVE_API_KEY", "test-drive-key")
os.environ.setdefault("COOKIE_DATA", "[]")
