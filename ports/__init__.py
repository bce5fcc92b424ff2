from .llm import LLMClientPort, LLMResponse
from .repos import AccountsRepoPort, ProfilesRepoPort
from .storage import DocumentStoragePort

__all__ = [
    "LLMClientPort",
    "LLMResponse",
    "AccountsRepoPort",
    "ProfilesRepoPort",
    "DocumentStoragePort",
]
