"""Google Gemini client for resume chat.

Talks to the generativelanguage v1beta REST API directly with httpx.
"""
import httpx
from typing import Dict, Any, List, Optional, Sequence, Tuple
import logging

from app.core.config import settings
from app.services.ai_context import build_chat_prompt

logger = logging.getLogger(__name__)


class GeminiAPIError(Exception):
    pass


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY environment variable not set")

        self.model = model or settings.GEMINI_MODEL
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"
        logger.info(f"Initialized GeminiClient with model: {self.model}")

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent?key={self.api_key}"

    @staticmethod
    def _build_body(
        system_prompt: str,
        user_prompt: str,
        history: Sequence[Tuple[str, str]] = (),
        max_tokens: int = 8192,
        model: str = "",
    ) -> Dict[str, Any]:
        contents: List[Dict[str, Any]] = []
        for role, text in history:
            # Gemini calls the assistant side "model"
            contents.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [{"text": text}],
            })
        contents.append({"role": "user", "parts": [{"text": user_prompt}]})

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": 0.7,
            },
        }
        # 3.x models require thinking; 2.5 models: disable it so tokens aren't spent on CoT.
        if model.startswith("gemini-3"):
            body["generationConfig"]["thinkingConfig"] = {"thinkingBudget": 8192}
        else:
            body["generationConfig"]["thinkingConfig"] = {"thinkingBudget": 0}
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return body

    async def _send_request(
        self, system_prompt: str, user_prompt: str,
        history: Sequence[Tuple[str, str]] = (),
        max_tokens: int = 8192, model: Optional[str] = None,
    ) -> str:
        use_model = model or self.model
        logger.info(f"Sending request to Gemini API with model: {use_model}")
        body = self._build_body(system_prompt, user_prompt, history, max_tokens, model=use_model)
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._endpoint(use_model),
                    json=body,
                    headers={"Content-Type": "application/json"},
                    timeout=120.0,
                )
                if resp.status_code != 200:
                    logger.error(f"Gemini API failed {resp.status_code}: {resp.text[:500]}")
                    raise GeminiAPIError(f"Gemini API failed with status {resp.status_code}")

                text = _extract_text(resp.json())
                logger.info(f"Received Gemini response (first 100 chars): {text[:100]}...")
                return text
        except Exception as e:
            logger.error(f"Error in Gemini API request: {e}")
            raise

    async def answer_question(
        self,
        question: str,
        resume_context: Optional[str] = None,
        job_description: Optional[str] = None,
        history: Sequence[Tuple[str, str]] = (),
    ) -> str:
        """Answer a question, grounding it in the resume text when one is given."""
        system_prompt, user_prompt = build_chat_prompt(question, resume_context, job_description)
        text = await self._send_request(system_prompt, user_prompt, history=history)
        return text.strip()


def _extract_text(response_data: Dict) -> str:
    """Extract text from Gemini generateContent response."""
    candidates = response_data.get("candidates") or []
    if not candidates or "content" not in candidates[0]:
        raise GeminiAPIError("Invalid response format from Gemini API")
    parts = candidates[0]["content"].get("parts", [])
    text = "".join(p.get("text", "") for p in parts if not p.get("thought"))
    if not text.strip():
        raise GeminiAPIError("Empty response from Gemini API")
    return text
