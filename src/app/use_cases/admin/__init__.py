"""Admin use cases for platform administration operations."""

from .manage_clients_use_case import (
    AuthClientResponse,
    ClientSecretResponse,
    ManageClientsUseCase,
    RegisterClientCommand,
)
from .purge_expired_use_case import PurgeExpiredResponse, PurgeExpiredUseCase

__all__ = [
    "ManageClientsUseCase",
    "RegisterClientCommand",
    "AuthClientResponse",
    "ClientSecretResponse",
    "PurgeExpiredUseCase",
    "PurgeExpiredResponse",
]
