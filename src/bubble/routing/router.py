"""Action routing: choose the skill for a user turn."""

import json
import logging
from typing import Any, Protocol

from google.genai import types

from bubble.llm.gemini import ClientFactory, create_client
from bubble.routing.types import RouterAction, RoutingDecision

logger = logging.getLogger(__name__)

DEFAULT_ROUTER_MODEL = "gemini-2.5-flash-lite"

CLASSIFIER_PROMPT = """You route requests for an AI assistant. Pick exactly one action:

- SIMPLE: conversation, questions answerable from general knowledge, file analysis
- SEARCH: needs current or factual information from the web
- DEEP_SEARCH: needs a thorough multi-source investigation
- THINK: hard reasoning, maths, multi-step planning
- IMAGE: the user wants a picture generated
- CANVAS: the user wants an interactive app, page or document built
- PROJECT: the user wants a multi-file project scaffolded
- STUDY: the user wants a study plan or course outline

The user attached {file_count} file(s). When files are attached prefer SIMPLE
unless the request clearly needs another action.

Respond with JSON: {{"action": "<ACTION>", "prompt": "<refined prompt for the action>"}}

REQUEST:
{prompt}"""


class ActionRouter(Protocol):
    """Classifies a user turn into a routing decision."""

    async def route(
        self,
        prompt: str,
        user_id: str,
        credential: str | None,
        file_count: int,
    ) -> RoutingDecision: ...


def parse_classification(raw: str) -> RoutingDecision:
    """Build a decision from the classifier's JSON answer.

    Raises:
        ValueError: If the answer is not a JSON object.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Router returned {type(data).__name__}, expected object")

    action = RouterAction.parse(data.get("action"))
    parameters: dict[str, Any] = {}
    refined = data.get("prompt")
    if action == RouterAction.IMAGE and isinstance(refined, str) and refined.strip():
        parameters["prompt"] = refined.strip()
    return RoutingDecision(action=action, parameters=parameters)


class GeminiSemanticRouter:
    """Router backed by a lightweight JSON-mode Gemini call."""

    def __init__(
        self,
        model: str = DEFAULT_ROUTER_MODEL,
        *,
        client_factory: ClientFactory = create_client,
    ) -> None:
        self._model = model
        self._client_factory = client_factory

    async def route(
        self,
        prompt: str,
        user_id: str,
        credential: str | None,
        file_count: int,
    ) -> RoutingDecision:
        client = self._client_factory(credential)
        response = await client.aio.models.generate_content(
            model=self._model,
            contents=CLASSIFIER_PROMPT.format(file_count=file_count, prompt=prompt),
            config=types.GenerateContentConfig(response_mime_type="application/json"),
        )
        decision = parse_classification(response.text or "")
        logger.info(
            "route_decided",
            extra={
                "user.id": user_id,
                "route.action": decision.action.value,
                "file_count": file_count,
            },
        )
        return decision


async def route_with_fallback(
    router: ActionRouter,
    prompt: str,
    user_id: str,
    credential: str | None,
    file_count: int,
) -> RoutingDecision:
    """Route a turn, treating any router failure as SIMPLE."""
    try:
        return await router.route(prompt, user_id, credential, file_count)
    except Exception as e:
        logger.warning(
            "router_failed",
            extra={"error.message": str(e), "error.type": type(e).__name__},
            exc_info=True,
        )
        return RoutingDecision(action=RouterAction.SIMPLE)
