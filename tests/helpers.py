"""Test doubles shared across modules."""
import inspect
import json
from typing import Dict, List, Optional, Tuple

from appforge.llm.client import ModelClient, ModelOptions


class ScriptedModel(ModelClient):
    """
    Model double that answers by matching a fragment of the system prompt.

    A response may be a string, an exception instance (raised), or a callable
    taking (prompt, options) and returning either.
    """

    def __init__(self, responses: Dict[str, object]):
        self.responses = responses
        self.calls: List[Tuple[str, Optional[ModelOptions]]] = []

    async def invoke(self, prompt, options=None):
        self.calls.append((prompt, options))
        system = (options.system_prompt if options else "") or ""
        for fragment, response in self.responses.items():
            if fragment in system:
                if callable(response):
                    response = response(prompt, options)
                    if inspect.isawaitable(response):
                        response = await response
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected model call with system prompt {system!r}")

    def called_with(self, fragment: str) -> int:
        return sum(1 for _, options in self.calls if options and fragment in (options.system_prompt or ""))


def fenced(value) -> str:
    return f"Here is the result:\n```json\n{json.dumps(value, indent=2)}\n```\nLet me know if you need changes."


PLANNING = {
    "app_name": "recipe-box",
    "description": "Share and plan recipes",
    "platforms": ["ios", "android", "web", "backend"],
    "features": ["Recipe feed", "Meal planner"],
    "api_endpoints": [{"method": "GET", "path": "/recipes", "description": "List recipes"}],
    "tech_stack": {"ios": "SwiftUI", "web": "Next.js", "backend": "Node.js + MongoDB"},
    "deployment": {"web": "Vercel", "backend": "Railway"},
}
