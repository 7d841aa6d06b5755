from taskhub.client.api import ApiClient, ApiError
from taskhub.client.cache import QueryCache
from taskhub.client.stores import AuthStore, JsonFileStorage, MemoryStorage, ThemeStore, UIStore

__all__ = [
    "ApiClient",
    "ApiError",
    "QueryCache",
    "AuthStore",
    "ThemeStore",
    "UIStore",
    "JsonFileStorage",
    "MemoryStorage",
]
