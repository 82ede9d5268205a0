import pytest

from bookworm.core.commands import READ_PAGE_COMMANDS, is_read_page_command
from bookworm.core.memory import ConversationMemory, SessionStore
from bookworm.speech import (
    Voice,
    describe_recognition_error,
    prepare_speech_text,
    rank_voices,
)


@pytest.mark.parametrize(
    "text",
    ["Can you READ THIS PAGE please", "what do you see?", "ok, take a picture", "Scan the book now"],
)
def test_read_page_commands_match_case_insensitively(text):
    assert is_read_page_command(text)


@pytest.mark.parametrize("text", ["tell me a story", "who wrote this book", "", None])
def test_regular_chat_is_not_a_command(text):
    assert not is_read_page_command(text)


def test_every_command_phrase_is_recognized():
    for command in READ_PAGE_COMMANDS:
        assert is_read_page_command(f"hey bookworm, {command}")


def test_memory_grows_and_clears():
    memory = ConversationMemory()
    memory.add("user", "hello")
    memory.add("assistant", "hi there")
    memory.remember_page("Once upon a time")

    assert len(memory) == 3
    assert memory.current_page_text == "Once upon a time"
    history = memory.as_history()
    assert history[0] == {"role": "user", "content": "hello"}
    assert history[2]["role"] == "system"
    assert '"Once upon a time"' in history[2]["content"]

    memory.clear()
    assert len(memory) == 0
    assert memory.current_page_text == ""


def test_memory_rejects_unknown_roles():
    with pytest.raises(ValueError):
        ConversationMemory().add("narrator", "text")


def test_session_store_reuses_memory_per_client():
    store = SessionStore()
    first = store.get("reader-1")
    first.add("user", "hello")

    assert store.get("reader-1") is first
    assert store.get("reader-2") is not first
    assert "reader-1" in store

    assert store.drop("reader-1") is True
    assert "reader-1" not in store
    assert store.drop("reader-1") is False


def test_prepare_speech_text_adds_pauses_and_collapses_whitespace():
    assert prepare_speech_text("Hello.World,how are you?Fine!") == "Hello. World, how are you? Fine!"
    assert prepare_speech_text("  lots   of\n\nspace  ") == "lots of space"
    assert prepare_speech_text("") == ""


def test_rank_voices_orders_preferred_english_then_rest():
    voices = [
        Voice("Fred", "en-US"),
        Voice("Google Deutsch", "de-DE"),
        Voice("Samantha", "en-US"),
        Voice("Google US English", "en-US"),
        Voice("Amelie", "fr-CA"),
    ]

    ranking = rank_voices(voices)

    assert [o.index for o in ranking.options] == [3, 2, 0, 1, 4]
    assert [o.preferred for o in ranking.options] == [True, True, False, False, False]
    assert ranking.default_index == 3
    assert ranking.options[0].label == "★ Google US English (en-US)"
    assert ranking.options[2].label == "Fred (en-US)"


def test_rank_voices_without_preferred_has_no_default():
    ranking = rank_voices([Voice("Fred", "en-GB")])
    assert ranking.default_index is None
    assert [o.name for o in ranking.options] == ["Fred"]


def test_describe_recognition_error():
    assert describe_recognition_error("no-speech") == "No speech detected. Try speaking again."
    assert describe_recognition_error("not-allowed").startswith("Microphone permission denied")
    assert describe_recognition_error("aborted") == "Error: aborted"
