from .base import AppError, DomainError, InfrastructureError, UnexpectedError, ValidationError

__all__ = [
    "AppError",
    "DomainError",
    "InfrastructureError",
    "UnexpectedError",
    "ValidationError",
]
