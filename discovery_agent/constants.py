import os
# print(os.environ)
RUNTIME_ENV = os.environ.get("RUNTIME_ENV", "production")
IS_DEV = RUNTIME_ENV == "development"

CONFIG_DIR = "/etc/discovery-agent"
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.toml")

DISCOVERY_URL = "http://www.sparod.com/melo/discover.php"
DISCOVERY_USER_AGENT = "Melo"
NETLINK_BUFFER_SIZE = 4096

API_HOST = "0.0.0.0"
API_PORT = 8210
