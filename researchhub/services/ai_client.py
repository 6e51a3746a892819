"""
Roadmap AI Client

Any OpenAI-compatible API works (DeepSeek by default), so we use the
openai library with a configurable base URL.

AI is used ONLY to draft learning roadmaps from research preferences.
Results are cached in MongoDB by preference hash, so identical
preferences never trigger a second call.
"""
from openai import OpenAI
import json

from researchhub.core.config import get_settings
from researchhub.models import ResearchPreference

settings = get_settings()


ROADMAP_SYSTEM_PROMPT = """You are an academic research mentor. Build a learning roadmap for a student
who wants to get into research. Return ONLY valid JSON in this format:
{
  "title": "string",
  "description": "string",
  "total_time": "string",
  "nodes": [
    {
      "id": "string",
      "title": "string",
      "description": "string",
      "category": "foundation | core | advanced | specialization",
      "duration": "string",
      "resources": ["string"],
      "skills": ["string"],
      "next_nodes": ["node id"]
    }
  ]
}
Use 6 to 12 nodes. Return ONLY the JSON, no explanation."""


class RoadmapAIClient:
    """
    Wrapper around the chat completions API for roadmap generation.
    """

    def __init__(self):
        self.client = OpenAI(
            api_key=settings.ai_api_key,
            base_url=settings.ai_base_url
        )
        self.model = settings.ai_model

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        """
        Call the chat completions endpoint.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=0.4
        )
        return response.choices[0].message.content

    @staticmethod
    def _strip_code_fences(text: str) -> str:
        """Remove markdown code fences the model sometimes wraps JSON in."""
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        return text.strip()

    def _extract_json(self, text: str) -> dict:
        return json.loads(self._strip_code_fences(text))

    @staticmethod
    def build_roadmap_prompt(preferences: ResearchPreference) -> str:
        lines = [
            f"Field of study: {preferences.field_of_study}",
            f"Experience level: {preferences.experience_level}",
            f"Goals: {preferences.goals}",
        ]
        if preferences.interest_areas:
            lines.append(f"Interest areas: {preferences.interest_areas}")
        if preferences.time_commitment:
            lines.append(f"Time available: {preferences.time_commitment} hours per week")
        if preferences.prior_experience:
            lines.append(f"Prior experience: {preferences.prior_experience}")
        if preferences.preferred_format:
            lines.append(f"Preferred learning format: {preferences.preferred_format}")
        return "\n".join(lines)

    def generate_roadmap(self, preferences: ResearchPreference) -> dict:
        """
        Generate a roadmap for the given preferences.

        Raises:
            json.JSONDecodeError: if the model did not return valid JSON
            openai.OpenAIError: on API failures
        """
        response = self._call_api(
            ROADMAP_SYSTEM_PROMPT,
            self.build_roadmap_prompt(preferences),
            max_tokens=3000
        )
        return self._extract_json(response)


# Singleton instance
_ai_client: RoadmapAIClient = None


def get_ai_client() -> RoadmapAIClient:
    """Get or create the AI client (singleton pattern)"""
    global _ai_client
    if _ai_client is None:
        _ai_client = RoadmapAIClient()
    return _ai_client
