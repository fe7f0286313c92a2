from plantcare.speech import clean_for_speech, recognition_language, voice_settings


def test_clean_for_speech_strips_markup():
    assert clean_for_speech("*Water* the `basil`\n\n_today_ ~now~") == "Water the basil today now"
    assert clean_for_speech("") == ""


def test_voice_settings_per_language():
    assert voice_settings("en").lang_tag == "en-US"
    assert voice_settings("en").rate == 0.9
    assert voice_settings("ar").rate == 0.8
    assert recognition_language("ar") == "ar-SA"
    assert recognition_language("de") == "en-US"
