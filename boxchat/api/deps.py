"""
API dependencies: the model gateway shared by request handlers.

Routes receive the gateway through Depends(get_gateway), so tests can swap it via
app.dependency_overrides.
"""

from functools import lru_cache

from boxchat.agent.llm import ModelGateway, OpenAIGateway


@lru_cache(maxsize=1)
def get_gateway() -> ModelGateway:
    return OpenAIGateway()
