from anthropic import Anthropic, APIError
from typing import Any, Dict, List, Optional
from models.transform import (
    ENTITY_BUCKETS,
    Entities,
    LLMCredentials,
    PromptVariant,
    TransformResult,
)
from models.tubuyaki import IntentTag
from prompts.prompt_manager import PromptManager, prompt_manager as default_prompt_manager
from utils.errors import TransformFailure, ValidationError
from utils.text_cleaner import TextCleaner
import json
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
DEFAULT_CONTEXT = "unknown"
MAX_IDEAS = 3
MAX_SUMMARY_LINES = 3


class TransformEngine:
    """Turns raw tubuyaki text into structured data with a single LLM call

    The engine holds no credentials. They are passed to every `transform`
    call, and no call is ever retried.
    """

    def __init__(
        self,
        prompts: Optional[PromptManager] = None,
        variant: PromptVariant = PromptVariant.FLEXIBLE,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout_seconds: Optional[float] = 60.0,
    ):
        self.prompts = prompts or default_prompt_manager
        self.variant = PromptVariant(variant)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._clients: Dict[str, Anthropic] = {}

    @classmethod
    def from_settings(cls, config) -> "TransformEngine":
        """Engine tuned by the TUBUYAKI_LLM_* / TUBUYAKI_PROMPT_VARIANT settings"""
        return cls(
            variant=config.TUBUYAKI_PROMPT_VARIANT,
            temperature=config.TUBUYAKI_LLM_TEMPERATURE,
            max_tokens=config.TUBUYAKI_LLM_MAX_TOKENS,
            timeout_seconds=config.TUBUYAKI_LLM_TIMEOUT_SECONDS,
        )

    def _get_client(self, credentials: LLMCredentials) -> Anthropic:
        client = self._clients.get(credentials.api_key)
        if client is None:
            client = Anthropic(
                api_key=credentials.api_key,
                max_retries=0,
                timeout=self.timeout_seconds,
            )
            self._clients[credentials.api_key] = client
        return client

    def transform(self, raw_text: str, credentials: LLMCredentials) -> TransformResult:
        """Transform raw text into a normalized TransformResult

        Raises:
            ValidationError: raw_text is empty
            TransformFailure: API/transport error, empty or unparseable output
        """
        if not raw_text or not raw_text.strip():
            raise ValidationError("rawText is required")

        prompt = self.prompts.build_transform_prompt(raw_text, self.variant)
        content = self._call_llm(prompt, credentials)
        parsed = self._parse(content)
        result = self.normalize(parsed, raw_text)

        logger.info(
            f"Transform complete: intent={result.intent}, ideas={len(result.ideas)}, "
            f"confidence={result.confidence:.2f}"
        )
        return result

    def _call_llm(self, prompt: str, credentials: LLMCredentials) -> str:
        """Make one API call and return the text content"""
        try:
            logger.info(f"Calling {credentials.model} for transform (prompt length: {len(prompt)} chars)")
            response = self._get_client(credentials).messages.create(
                model=credentials.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise TransformFailure(f"LLM API error: {e}") from e

        blocks = getattr(response, "content", None) or []
        text = "".join(
            block.text for block in blocks if isinstance(getattr(block, "text", None), str)
        ).strip()
        if not text:
            raise TransformFailure("LLM returned empty response")
        return text

    def _parse(self, content: str) -> Dict[str, Any]:
        """Parse the model output strictly as a JSON object"""
        content = TextCleaner.strip_code_fences(content)
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Raw content that failed to parse: {content[:500]}")
            raise TransformFailure(f"LLM returned invalid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise TransformFailure(f"Expected JSON object, got {type(parsed).__name__}")
        return parsed

    @classmethod
    def normalize(cls, parsed: Dict[str, Any], raw_text: str) -> TransformResult:
        """Apply field defaults so a sparse model response still yields a full result"""
        clean_text = parsed.get("clean_text")
        if not isinstance(clean_text, str) or not clean_text.strip():
            clean_text = raw_text

        summary = parsed.get("summary_3lines")
        summary_lines = TextCleaner.non_empty_lines(summary, MAX_SUMMARY_LINES) if isinstance(summary, str) else []

        next_action = parsed.get("next_action")
        context = parsed.get("context")
        confirm_question = parsed.get("confirm_question")

        return TransformResult(
            clean_text=clean_text.strip(),
            intent=cls._normalize_intent(parsed.get("intent")),
            entities=cls._normalize_entities(parsed.get("entities")),
            summary_3lines="\n".join(summary_lines),
            ideas=cls._string_list(parsed.get("ideas"))[:MAX_IDEAS],
            next_action=next_action.strip() if isinstance(next_action, str) else "",
            confidence=cls._normalize_confidence(parsed.get("confidence")),
            context=context.strip() if isinstance(context, str) and context.strip() else DEFAULT_CONTEXT,
            confirm_question=confirm_question.strip() if isinstance(confirm_question, str) and confirm_question.strip() else None,
        )

    @staticmethod
    def _string_list(value: Any, coerce: bool = True) -> List[str]:
        """Stripped non-empty strings from a list (or a single string)

        With `coerce`, numbers are turned into strings; otherwise only
        str items are kept. None, booleans and nested values are dropped.
        """
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            return []
        items = []
        for item in value:
            if isinstance(item, str):
                text = item.strip()
            elif coerce and isinstance(item, (int, float)) and not isinstance(item, bool):
                text = str(item)
            else:
                continue
            if text:
                items.append(text)
        return items

    @classmethod
    def _normalize_intent(cls, value: Any) -> List[str]:
        # Unknown tags pass through unchanged so newer prompt vocabularies
        # do not break older deployments
        tags = []
        for tag in cls._string_list(value, coerce=False):
            if tag not in tags:
                tags.append(tag)
        return tags or [IntentTag.NOTE.value]

    @classmethod
    def _normalize_entities(cls, value: Any) -> Entities:
        value = value if isinstance(value, dict) else {}
        return Entities(**{bucket: cls._string_list(value.get(bucket)) for bucket in ENTITY_BUCKETS})

    @staticmethod
    def _normalize_confidence(value: Any) -> float:
        if isinstance(value, bool):
            return DEFAULT_CONFIDENCE
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if confidence != confidence:  # NaN
            return DEFAULT_CONFIDENCE
        return max(0.0, min(1.0, confidence))
