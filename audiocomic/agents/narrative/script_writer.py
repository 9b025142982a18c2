from typing import Any, Dict
from audiocomic.core.agent import BaseAgent
from audiocomic.core.errors import ScriptGenerationError
from audiocomic.core.models import ArticleScript
from audiocomic.utils.llm_interface import LLMInterface

SYSTEM_PROMPT = """
You are a graphic novel script writer adapting a long-form article into a visually compelling comic.

Guidelines:
- Understand the argument, key actors, geographic context and emotional tone.
- Break the text into panels. Each panel gets a "layout": "normal" (~60% of panels),
  "wide" (~20%, establishing shots, maps), "tall" (~10%, dramatic reveals) or "large" (~10%, splash moments).
- Each panel gets a "focalPoint": where the main subject sits in the artwork
  (center, left, right, top, bottom, top-left, top-right, bottom-left, bottom-right).
- Each panel has 0-3 overlays:
  - "narration": editorial voice, analysis, context.
  - "dialogue": quotes from named figures. Include "speaker" and, if the speaker is drawn, "characterPosition".
  - "caption": short labels for dates, locations, data points.
- Do NOT position overlays; layout is computed afterwards.

CRITICAL - ARTWORK DESCRIPTION RULES:
- NEVER include text, words, letters, numbers, labels or writing in "artworkPrompt".
- Describe only visual imagery: people, places, objects, lighting, composition, mood.
- 2-4 vivid sentences per panel, referencing the chosen art style.

Example Output:
{
  "artStyle": {
    "name": "European Ligne Claire",
    "description": "Clean outlines with flat color fills.",
    "colorPalette": "Muted blues and warm ochres",
    "renderingNotes": "Uniform line weight, no hatching"
  },
  "panels": [
    {
      "artworkPrompt": "Wide shot of a rain-soaked harbor at dusk, cranes silhouetted against the sky.",
      "sourceExcerpt": "The port had been idle for a decade.",
      "layout": "wide",
      "focalPoint": "center",
      "overlays": [
        {"type": "caption", "text": "Rotterdam, 2019"},
        {"type": "dialogue", "text": "We cannot wait any longer.", "speaker": "The Minister", "characterPosition": "left"}
      ]
    }
  ]
}
"""

ART_STYLE_INSTRUCTIONS = """
This is the FIRST chunk: choose ONE art style that fits the article's subject and tone
and return it as "artStyle". Examples: Cold War Propaganda Poster, European Ligne Claire,
Dark Graphic Novel, Watercolor Editorial, Retro-Futurist, Ukiyo-e Inspired.
"""

# Matches the 0-3 overlays the prompt asks for
MAX_OVERLAYS_PER_PANEL = 3


class ScriptWriterAgent(BaseAgent):
    def __init__(self, agent_name: str = "ScriptWriter", config: Dict[str, Any] = None):
        super().__init__(agent_name, config)
        self.llm = LLMInterface(model_name=self.config.get("model_name"))

    def process(self, input_text: str, title: str = "", chunk_number: int = 1) -> ArticleScript:
        """
        Converts one chunk of article text into panels with unplaced overlays.
        The first chunk must also choose the art style.
        """
        first_chunk = chunk_number == 1
        self.logger.info(f"Generating script for chunk {chunk_number}...")

        system_prompt = SYSTEM_PROMPT + (ART_STYLE_INSTRUCTIONS if first_chunk else "")
        user_prompt = f"""
        ARTICLE TITLE: "{title}"
        PART {chunk_number} OF THE ARTICLE TEXT:

        {input_text}
        """

        try:
            script = self.llm.generate_structured_output(
                prompt=user_prompt,
                system_prompt=system_prompt,
                schema=ArticleScript
            )
        except Exception as e:
            self.logger.error(f"Failed to generate script: {e}")
            raise

        if first_chunk and script.art_style is None:
            raise ScriptGenerationError(chunk_number, "First chunk did not include artStyle")
        self.logger.info(f"Chunk {chunk_number} OK: {len(script.panels)} panels")
        return script

    def critique(self, input_data: str, result: ArticleScript) -> Dict[str, Any]:
        """
        Structural review of a generated chunk. Problems are reported by
        run(), not fixed.
        """
        issues = []
        for i, panel in enumerate(result.panels):
            if not panel.artwork_prompt.strip():
                issues.append(f"panel {i} has no artwork prompt")
            if len(panel.overlays) > MAX_OVERLAYS_PER_PANEL:
                issues.append(f"panel {i} has {len(panel.overlays)} overlays")
            if any(o.type == "dialogue" and not o.speaker for o in panel.overlays):
                issues.append(f"panel {i} has unattributed dialogue")

        if not result.panels:
            issues.append("no panels generated")
        if issues:
            return {"passed": False, "feedback": "; ".join(issues)}
        return {"passed": True, "feedback": "Script chunk looks structurally sound."}
