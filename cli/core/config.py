# cli/core/config.py
from pathlib import Path
import os

# URL of the UserHub API
BASE_URL = os.environ.get("USERHUB_URL", "http://localhost:3001")

# CA Certificate for SSL verification (None = use default, path = custom CA)
CA_CERT = os.environ.get("USERHUB_CA_CERT", str(Path(__file__).parent.parent.parent / "certs" / "ca.crt"))

# Local folder for CLI data (session tokens)
APP_DIR = Path(os.environ.get("USERHUB_HOME", str(Path.home() / ".userhub")))

# Stored access/refresh token pair
SESSION_FILE = APP_DIR / "session.json"

APP_DIR.mkdir(parents=True, exist_ok=True)
