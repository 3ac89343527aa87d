import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "edge-auth-proxy")

# Configuration store backend and its location
CONFIG_STORE = os.getenv("CONFIG_STORE", "JsonFileConfigStore")
CONFIG_STORE_PATH = os.getenv("CONFIG_STORE_PATH", "proxy-servers.json")

# Global auth policy: environment override first, store record second
GLOBAL_AUTH_CONFIGS_ENV = "GLOBAL_AUTH_CONFIGS"
GLOBAL_AUTH_STORE_KEY = os.getenv("GLOBAL_AUTH_STORE_KEY", "global-auth-configs")

DEFAULT_AUTH_HEADER = "Authorization"

BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "30"))

METRICS_PATH = os.getenv("METRICS_PATH", "/metrics")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
