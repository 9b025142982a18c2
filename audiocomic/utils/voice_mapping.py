import re
import logging
from typing import Dict, Iterable, List, Optional
from audiocomic.core.models import CharacterVoiceProfile, ComicPanel

logger = logging.getLogger(__name__)

NARRATOR_PATTERNS = [
    re.compile(r"^narrator$", re.IGNORECASE),
    re.compile(r"^author$", re.IGNORECASE),
    re.compile(r"^the author$", re.IGNORECASE),
    re.compile(r"\bnarrator\b", re.IGNORECASE),
    re.compile(r"\bthe author\b", re.IGNORECASE),
]


def is_narrator_speaker(speaker: str) -> bool:
    speaker = speaker.strip()
    return any(pattern.search(speaker) for pattern in NARRATOR_PATTERNS)


def collect_speakers(panels: Iterable[ComicPanel]) -> List[str]:
    """Distinct voiced dialogue speakers in order of first appearance. Narrators are left out."""
    speakers = []
    for panel in panels:
        for overlay in panel.overlays:
            speaker = (overlay.speaker or "").strip()
            if overlay.type == "dialogue" and speaker and speaker not in speakers and not is_narrator_speaker(speaker):
                speakers.append(speaker)
    return speakers


def build_voice_profiles(voice_map: Dict[str, Dict[str, str]],
                         speaker_mapping: Optional[Dict[str, str]] = None) -> List[CharacterVoiceProfile]:
    """
    Builds voice profiles from a voice name -> {"voice_id", "description"} map,
    as produced once voices have been described and created.

    With `speaker_mapping` (speaker -> shared voice name, see SpeakerConsolidator)
    every mapped speaker gets the entry of its shared voice. Speakers whose voice
    has no entry are skipped.
    """
    speaker_mapping = speaker_mapping or {}
    profiles = []
    for speaker, voice_name in speaker_mapping.items():
        entry = voice_map.get(voice_name) or voice_map.get(speaker)
        if entry is None:
            logger.warning(f"No voice created for '{voice_name}', skipping speaker '{speaker}'")
            continue
        profiles.append(_profile(speaker, entry))

    # Voice names that are not themselves mapped speakers still describe their own speaker
    profiles.extend(_profile(name, entry) for name, entry in voice_map.items() if name not in speaker_mapping)
    return profiles


def _profile(speaker: str, entry: Dict[str, str]) -> CharacterVoiceProfile:
    return CharacterVoiceProfile(
        speaker=speaker,
        voice_id=entry["voice_id"],
        voice_description=entry.get("description", ""),
        is_narrator=is_narrator_speaker(speaker),
    )
