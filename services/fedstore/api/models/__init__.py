"""API request/response models."""

from .auth import LoginRequest, LoginResponse, ProviderInfo, ProvidersResponse
from .common import FedstoreBaseModel
from .users import UserResponse

__all__ = [
    "FedstoreBaseModel",
    "LoginRequest",
    "LoginResponse",
    "ProviderInfo",
    "ProvidersResponse",
    "UserResponse",
]
