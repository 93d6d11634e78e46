# ruff: noqa: F403, F401
"""Schemas package initialization."""

# Import all schemas to ensure they're registered
from .base import *
from .branch import *
from .chat import *
from .conversation import *
from .message import *
from .settings import *

# Rebuild models after all schemas are loaded
ConversationCreatedResponse.model_rebuild()
ConversationDetailResponse.model_rebuild()
ChatTurnResponse.model_rebuild()
