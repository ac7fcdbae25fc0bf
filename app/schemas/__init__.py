# ruff: noqa: F403, F401
"""Schemas package initialization."""

# Import all schemas to ensure they're registered
from .analysis import *
from .base import *
from .contract import *
from .conversation import *
from .memory import *
from .message import *
from .upload import *
