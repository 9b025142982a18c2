import unittest
from audiocomic.utils.voice_mapping import build_voice_profiles, is_narrator_speaker


class TestVoiceMapping(unittest.TestCase):
    def test_narrator_detection(self):
        for speaker in ("Narrator", "narrator ", "The Author", "author", "Narrator (voice-over)"):
            self.assertTrue(is_narrator_speaker(speaker), speaker)
        for speaker in ("Angela Merkel", "Authority Spokesman", "The Minister"):
            self.assertFalse(is_narrator_speaker(speaker), speaker)

    def test_build_voice_profiles(self):
        profiles = build_voice_profiles({
            "Narrator": {"voice_id": "v-narr", "description": "Calm documentary voice"},
            "General Mladić": {"voice_id": "v-gen"},
        })

        self.assertEqual([p.speaker for p in profiles], ["Narrator", "General Mladić"])
        self.assertTrue(profiles[0].is_narrator)
        self.assertEqual(profiles[0].voice_description, "Calm documentary voice")
        self.assertFalse(profiles[1].is_narrator)
        self.assertEqual(profiles[1].voice_description, "")
        self.assertEqual(profiles[1].model_dump(by_alias=True)["voiceId"], "v-gen")

    def test_missing_voice_id(self):
        with self.assertRaises(KeyError):
            build_voice_profiles({"Narrator": {"description": "no id"}})

if __name__ == "__main__":
    unittest.main()
