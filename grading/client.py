from __future__ import annotations  # Grading client interface and LLM-backed implementation

import logging
from pathlib import Path
from typing import Optional, Protocol

from config import LlmRoute, load_config, resolve_route
from interview_session.errors import TransientGradingFailure
from llm_gateway import HttpClient, LlmGatewayError, call

from .prompts import GRADER_SYSTEM_PROMPT, build_repair_prompt

logger = logging.getLogger(__name__)

GRADE_TARGET = "grading.grade"
REPAIR_TARGET = "grading.repair"


class GradingClient(Protocol):  # External grader; both calls may fail transiently
    def grade(self, prompt: str) -> str: ...

    def repair(self, prompt: str, broken_text: str) -> str: ...


class LlmGradingClient:  # Grader backed by a chat-completions route
    def __init__(
        self,
        grade_route: LlmRoute,
        repair_route: Optional[LlmRoute] = None,
        *,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        self._grade_route = grade_route
        self._repair_route = repair_route or grade_route
        self._http = http_client

    @classmethod
    def from_config(cls, path: Path, *, http_client: Optional[HttpClient] = None) -> "LlmGradingClient":
        cfg = load_config(path)
        grade_route = resolve_route(cfg, GRADE_TARGET)
        try:
            repair_route = resolve_route(cfg, REPAIR_TARGET)
        except KeyError:
            repair_route = grade_route
        return cls(grade_route, repair_route, http_client=http_client)

    def grade(self, prompt: str) -> str:
        return self._send(prompt, self._grade_route)

    def repair(self, prompt: str, broken_text: str) -> str:
        return self._send(build_repair_prompt(prompt, broken_text), self._repair_route)

    def _send(self, task: str, route: LlmRoute) -> str:
        try:
            return call(task, cfg=route, system=GRADER_SYSTEM_PROMPT, client=self._http)
        except LlmGatewayError as exc:
            logger.warning("Grader route %s failed: %s", route.name, exc)
            raise TransientGradingFailure(str(exc)) from exc


__all__ = ["GRADE_TARGET", "REPAIR_TARGET", "GradingClient", "LlmGradingClient"]
