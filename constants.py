import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
ALLOWED_ORIGIN = os.getenv("ALLOWED_ORIGIN", "*")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

# peer-left extends the created/joined/full/ready event set, so it is opt-in
NOTIFY_PEER_LEFT = os.getenv("NOTIFY_PEER_LEFT", "false").lower() in ("1", "true", "yes")

ROOM_CAPACITY = 2
