# constants.py
# Browser defaults
HEADLESS = True
NAVIGATION_WAIT_UNTIL = "networkidle"
DEFAULT_TIMEOUT_MS = 30000           # navigation and element waits

# Pause after goto/click so post-load trackers can fire
SETTLE_DELAY_MS = 1000
TYPE_DELAY_MS = 200                  # per keystroke

DATA_LAYER_NAME = "dataLayer"

# waitForRequest step
WAIT_FOR_REQUESTS_COUNT = 1
WAIT_FOR_REQUESTS_TIMEOUT_MS = 10000

# HTTP invocation
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8080

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
