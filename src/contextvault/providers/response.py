"""
Decoding of language-model responses.

Services answer in one of a few known shapes. They are modelled as a closed
set of variants tried in priority order:

1. plain text (a bare string)
2. choice list (``{"choices": [{"message": {"content": ...}}]}`` or
   ``{"choices": [{"text": ...}]}``)
3. named field (``{"response": ...}``, ``{"text": ...}`` or
   ``{"description": ...}``)

Any other mapping or list is serialized to JSON as a last resort.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from contextvault.exceptions import LLMError

NO_RESPONSE = "No response generated."


class ChoiceMessage(BaseModel):
    content: Optional[str] = None


class Choice(BaseModel):
    message: Optional[ChoiceMessage] = None
    text: Optional[str] = None


class ChoiceListResponse(BaseModel):
    """Chat-completion style response."""
    choices: list[Choice]

    def answer(self) -> str:
        choice = self.choices[0]
        if choice.message and choice.message.content:
            return choice.message.content
        return choice.text or NO_RESPONSE


class NamedFieldResponse(BaseModel):
    """Object carrying the answer in one well-known field."""
    response: Optional[str] = None
    text: Optional[str] = None
    description: Optional[str] = None

    def answer(self) -> Optional[str]:
        for value in (self.response, self.text, self.description):
            if value is not None:
                return value
        return None


def extract_answer(raw: Any) -> str:
    """
    Turn a raw model response into answer text.

    Raises:
        LLMError: If the response is empty or not a known shape
    """
    if isinstance(raw, str):
        return raw.strip()

    if isinstance(raw, dict):
        if raw.get("choices"):
            try:
                return ChoiceListResponse.model_validate(raw).answer().strip()
            except PydanticValidationError:
                pass

        try:
            answer = NamedFieldResponse.model_validate(raw).answer()
        except PydanticValidationError:
            answer = None
        if answer is not None:
            return answer.strip()

    if isinstance(raw, (dict, list)):
        return json.dumps(raw)

    raise LLMError(f"Unrecognized language-model response: {raw!r}")
