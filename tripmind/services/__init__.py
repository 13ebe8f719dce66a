"""Services for the trip assistant."""
from .llm_client import LLMClient
from .extractor import MessageExtractor
from .intent_classifier import IntentClassifier
from .pre_trip import PreTripPlanner
from .in_trip import InTripAssistant
from .post_trip import PostTripProcessor
from .planning import TripPlanner
from .orchestrator import Orchestrator

__all__ = [
    "LLMClient",
    "MessageExtractor",
    "IntentClassifier",
    "PreTripPlanner",
    "InTripAssistant",
    "PostTripProcessor",
    "TripPlanner",
    "Orchestrator",
]
