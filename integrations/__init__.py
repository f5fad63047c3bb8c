"""AI enhancement integrations.

Provides the enhancement contract and the PRISMA AI API client.
"""

from .base import EnhancementProvider, EnhancementResult
from .prisma_ai import PrismaAIClient

__all__ = [
    "EnhancementProvider",
    "EnhancementResult",
    "PrismaAIClient",
]
