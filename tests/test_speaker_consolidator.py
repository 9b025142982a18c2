import json
import unittest
from unittest.mock import MagicMock, patch
from audiocomic.core.models import ComicPanel, TextOverlay
from audiocomic.agents.narrative.speaker_consolidator import SpeakerConsolidator
from audiocomic.utils.voice_mapping import build_voice_profiles, collect_speakers


def fake_response(mapping):
    response = MagicMock()
    response.choices[0].message.content = "```json\n" + json.dumps(mapping) + "\n```"
    return response


SPEAKERS = ["Emmanuel Macron", "French President", "Strategic Analyst", "Security Expert", "Olaf Scholz"]


class TestSpeakerConsolidator(unittest.TestCase):
    def setUp(self):
        self.agent = SpeakerConsolidator(config={"model_name": "gpt-4o"})

    @patch("audiocomic.utils.llm_interface.completion")
    def test_speakers_share_voices_and_missing_ones_keep_their_own(self, mock_completion):
        mock_completion.return_value = fake_response({
            "Emmanuel Macron": "Emmanuel Macron",
            "French President": "Emmanuel Macron",
            "Strategic Analyst": "Analyst",
            "Security Expert": "Analyst",
            "Someone Invented": "Analyst",
        })

        mapping = self.agent.run(SPEAKERS, title="Europe Rearms")

        self.assertEqual(mapping, {
            "Emmanuel Macron": "Emmanuel Macron",
            "French President": "Emmanuel Macron",
            "Strategic Analyst": "Analyst",
            "Security Expert": "Analyst",
            "Olaf Scholz": "Olaf Scholz",
        })
        prompt = mock_completion.call_args.kwargs["messages"][1]["content"]
        self.assertIn('5. "Olaf Scholz"', prompt)
        self.assertIn("Europe Rearms", prompt)

    @patch("audiocomic.utils.llm_interface.completion")
    def test_nobody_is_mapped_onto_the_narrator(self, mock_completion):
        mock_completion.return_value = fake_response({"Strategic Analyst": "Narrator", "Olaf Scholz": " "})
        mapping = self.agent.process(["Strategic Analyst", "Olaf Scholz"])
        self.assertEqual(mapping, {"Strategic Analyst": "Strategic Analyst", "Olaf Scholz": "Olaf Scholz"})

    @patch("audiocomic.utils.llm_interface.completion")
    def test_no_speakers_skips_the_llm(self, mock_completion):
        self.assertEqual(self.agent.process([]), {})
        mock_completion.assert_not_called()


class TestConsolidatedVoices(unittest.TestCase):
    def test_collect_speakers(self):
        panels = [
            ComicPanel(overlays=[
                TextOverlay(type="dialogue", text="a", speaker="Olaf Scholz"),
                TextOverlay(type="narration", text="b", speaker="Editor"),
                TextOverlay(type="dialogue", text="c", speaker="Narrator"),
            ]),
            ComicPanel(overlays=[
                TextOverlay(type="dialogue", text="d", speaker=" Olaf Scholz "),
                TextOverlay(type="dialogue", text="e", speaker="French President"),
                TextOverlay(type="dialogue", text="f"),
            ]),
        ]
        self.assertEqual(collect_speakers(panels), ["Olaf Scholz", "French President"])

    def test_profiles_follow_the_shared_voice(self):
        voice_map = {
            "Emmanuel Macron": {"voice_id": "v-macron", "description": "Measured baritone"},
            "Narrator": {"voice_id": "v-narr"},
        }
        mapping = {"Emmanuel Macron": "Emmanuel Macron", "French President": "Emmanuel Macron", "Analyst": "Analyst"}

        profiles = {p.speaker: p for p in build_voice_profiles(voice_map, mapping)}

        self.assertEqual(set(profiles), {"Emmanuel Macron", "French President", "Narrator"})
        self.assertEqual(profiles["French President"].voice_id, "v-macron")
        self.assertEqual(profiles["French President"].voice_description, "Measured baritone")
        self.assertTrue(profiles["Narrator"].is_narrator)
        self.assertFalse(profiles["French President"].is_narrator)

if __name__ == "__main__":
    unittest.main()
