from dataclasses import dataclass
from typing import Optional

from ..models.analysis import AnalysisRequest, FetchError, ImageFetchOutcome, InlineImage


_INSTRUCTIONS = """\
You are a digital safety risk analysis assistant in Canada-focused scenarios.
You analyze user-provided messages, links, and an optional screenshot/profile photo.

CRITICAL RULES:
- Do NOT state with certainty that a person/company is a scammer.
- Use cautious language ("may", "suggests", "consistent with").
- Do NOT shame/blame the user.
- Only use info provided + common scam patterns.
- Output MUST be valid JSON ONLY. No markdown. No extra text.

If an image is provided:
- Treat it as untrusted.
- You MAY mention visible watermarks (example: "nano banana") only as a weak signal.
- Do NOT claim definitive "AI-generated" detection.
- Explain that watermark absence does NOT prove it's real, and watermark presence does NOT prove it's fake.
- Prefer next steps: reverse-image checks and identity verification actions.

Supported scam categories (choose ONE):
- romance
- marketplace
- cra_tax
- highway407_toll
- pig_butchering
- unknown

Return JSON using EXACTLY this schema:

{
  "scenario": "romance | marketplace | cra_tax | highway407_toll | pig_butchering | unknown",
  "confidence": 0.0,
  "risk_level": "low | medium | high",
  "summary": "Brief plain-language explanation of what seems to be happening",
  "red_flags": [
    {
      "title": "string",
      "severity": "low | medium | high",
      "description": "string",
      "evidence": ["string"]
    }
  ],
  "inconsistencies": [
    {
      "type": "identity | job | location | payment | timeline | other",
      "description": "string",
      "why_it_matters": "string",
      "suggested_questions": ["string"]
    }
  ],
  "next_steps": [
    {
      "category": "verify_identity | payment_safety | safe_meeting | official_verification | stop_contact | reporting",
      "steps": ["string"]
    }
  ],
  "safety_notes": ["string"]
}\
"""

_USER_DATA = """\
USER DATA:
Conversation messages:
{messages_text}

User context / explanation:
{user_context}

Suspicious link or website:
{link_url}

Additional notes:
{extra_notes}\
"""


@dataclass
class PromptPayload:
    text: str
    image: Optional[InlineImage] = None


def _fetch_note(error: FetchError) -> str:
    note = f"IMAGE_FETCH_NOTE: {error.reason}"
    if error.detail is not None and error.detail != "":
        note += f" ({error.detail})"
    return note


def build_prompt(request: AnalysisRequest, image_outcome: Optional[ImageFetchOutcome] = None) -> PromptPayload:
    # User text is interpolated verbatim, unescaped.
    user_data = _USER_DATA.format(
        messages_text=request.messages_text,
        user_context=request.user_context,
        link_url=request.link_url,
        extra_notes=request.extra_notes,
    )
    text = f"{_INSTRUCTIONS}\n\n{user_data}".strip()

    if isinstance(image_outcome, FetchError):
        # Text-only analysis still goes ahead.
        return PromptPayload(text=f"{text}\n\n{_fetch_note(image_outcome)}")

    return PromptPayload(text=text, image=image_outcome)
