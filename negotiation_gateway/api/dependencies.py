"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from negotiation_gateway.config import settings
from negotiation_gateway.domain.models import PolicyConfig
from negotiation_gateway.infrastructure.clients.classifier import ClassifierClient
from negotiation_gateway.infrastructure.clients.model import ModelClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_policy() -> PolicyConfig:
    """Provide the negotiation policy built from settings"""
    return settings.policy()


def get_model_client() -> ModelClient:
    """Provide language model client instance"""
    return ModelClient()


def get_classifier_client() -> ClassifierClient:
    """Provide hardship document classifier instance"""
    return ClassifierClient()
