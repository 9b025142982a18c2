from typing import Any, Dict, List
from audiocomic.core.agent import BaseAgent
from audiocomic.core.models import SpeakerMapping
from audiocomic.utils.llm_interface import LLMInterface
from audiocomic.utils.voice_mapping import is_narrator_speaker

SYSTEM_PROMPT = """
You are a voice casting director for a graphic novel adaptation. Given the speaker names
found in the dialogue, decide which speakers should share a voice actor.
This only controls which voice is used for audio; the speaker name shown in the bubble never changes.

Guidelines:
1. SAME PERSON, DIFFERENT LABELS: "Emmanuel Macron" and "French President" share one voice.
   Use the most recognizable name.
2. DISTINCT REAL PEOPLE GET DISTINCT VOICES: never merge clearly different named individuals.
3. GENERIC ROLES THAT OVERLAP: interchangeable analysts, experts, officials or critics share a voice.
4. GROUPS: "European Leaders", "Polish Officials" map to a generic voice like "Official".
5. Use as many voices as the article needs; do not force merges that would sound wrong.
6. Do NOT map anything to "Narrator"; narration boxes have no voice.
7. Map EVERY original speaker name to its voice name. A speaker that keeps its own voice maps to itself.

Respond with a single JSON object, for example:
{"European Defense Analyst": "Analyst", "Strategic Analyst": "Analyst", "French President": "Emmanuel Macron"}
"""


class SpeakerConsolidator(BaseAgent):
    """
    Groups dialogue speakers that should sound alike onto shared voice names.
    """
    def __init__(self, agent_name: str = "SpeakerConsolidator", config: Dict[str, Any] = None):
        super().__init__(agent_name, config)
        self.llm = LLMInterface(model_name=self.config.get("model_name"))

    def process(self, speakers: List[str], title: str = "") -> Dict[str, str]:
        """
        Returns a mapping for every speaker in `speakers`. Speakers the LLM
        leaves out, or maps to a narrator, keep their own voice.
        """
        if not speakers:
            return {}

        listing = "\n".join(f'{i + 1}. "{s}"' for i, s in enumerate(speakers))
        user_prompt = f"""
        ARTICLE TITLE: "{title}"
        These are the {len(speakers)} speaker names found in the dialogue bubbles:

        {listing}
        """

        result = self.llm.generate_structured_output(
            prompt=user_prompt,
            system_prompt=SYSTEM_PROMPT,
            schema=SpeakerMapping
        )
        raw = result.root

        mapping = {}
        for speaker in speakers:
            voice = (raw.get(speaker) or "").strip()
            if not voice or is_narrator_speaker(voice):
                voice = speaker
            mapping[speaker] = voice

        missing = [s for s in speakers if s not in raw]
        if missing:
            self.logger.warning(f"LLM skipped {len(missing)} speaker(s), keeping their own voice: {missing}")
        self.logger.info(f"🎙️ {len(speakers)} speakers -> {len(set(mapping.values()))} voices")
        return mapping
