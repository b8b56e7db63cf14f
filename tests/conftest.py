import os
import tempfile

# Settings are read from the environment when backend.app.main is imported
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="userhub-db-"), "userhub.db"))
os.environ.setdefault("USERHUB_HOME", tempfile.mkdtemp(prefix="userhub-cli-"))
