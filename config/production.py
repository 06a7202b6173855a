from .config import *  # noqa: F401,F403
from .config import env_bool

DEBUG = False
LOG_JSON = env_bool("LOG_JSON", True)
