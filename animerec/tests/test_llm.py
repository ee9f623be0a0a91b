from unittest.mock import MagicMock, patch

from animerec.catalog.models import MediaRecord
from animerec.chat.models import ChatHistoryMessage
from animerec.chat.planner import FORMAT_QUESTION
from animerec.llm.config import LLMConfig
from animerec.llm.groq_client import build_system_prompt, fallback_reply, generate_reply
from animerec.profile.models import Preferences
from animerec.recommendations.models import RecommendationItem

SAMPLE_PREFERENCES = Preferences(
    preferred_format="ANIME",
    liked_genres=["Action", "Drama"],
    disliked_genres=["Horror"],
    examples_liked=["Vinland Saga"],
    mood="dark",
    no_go_filters=["gore"],
    question_count=2,
)


def _item(media_id: int, title: str, episodes=None, chapters=None) -> RecommendationItem:
    raw = MediaRecord.model_validate({"id": media_id, "title": {"english": title}})
    return RecommendationItem(
        id=media_id,
        title=title,
        format="TV" if episodes else "MANGA",
        episodes=episodes,
        chapters=chapters,
        why_fits="Matches your interest in Action.",
        score=9,
        raw=raw,
    )


SAMPLE_RECS = [_item(1, "Attack on Titan", episodes=25), _item(2, "Berserk", chapters=380)]

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def test_system_prompt_includes_profile_and_recommendations():
    prompt = build_system_prompt(SAMPLE_PREFERENCES, SAMPLE_RECS)

    assert "Preferred format: anime." in prompt
    assert "Likes genres: Action, Drama." in prompt
    assert "Avoids genres: Horror." in prompt
    assert "Likes titles: Vinland Saga." in prompt
    assert "Strictly avoid: gore." in prompt
    assert "1. **Attack on Titan** (TV, 25 eps)" in prompt
    assert "2. **Berserk** (MANGA, 380 ch)" in prompt
    assert "Don't recommend yet" not in prompt


def test_system_prompt_for_asking_turn():
    prompt = build_system_prompt(Preferences(), None, FORMAT_QUESTION)

    assert "Preferred format: anime or manga." in prompt
    assert "Don't recommend yet" in prompt
    assert FORMAT_QUESTION in prompt


@patch("animerec.llm.groq_client.Groq")
def test_generate_reply_returns_llm_text(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
        "  Here are two dark picks!  "
    )
    history = [
        ChatHistoryMessage(role="user", content="hi"),
        ChatHistoryMessage(role="assistant", content="Anime or manga?"),
    ]

    reply = generate_reply(
        "anime please", SAMPLE_PREFERENCES, history, SAMPLE_RECS, config=ENABLED_CONFIG,
    )

    assert reply == "Here are two dark picks!"
    messages = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "user", "content": "hi"}
    assert messages[2] == {"role": "assistant", "content": "Anime or manga?"}
    assert messages[-1] == {"role": "user", "content": "anime please"}


@patch("animerec.llm.groq_client.Groq")
def test_generate_reply_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    reply = generate_reply(
        "hello", Preferences(), recommendations=None, next_question=FORMAT_QUESTION,
        config=ENABLED_CONFIG,
    )

    assert reply == FORMAT_QUESTION


@patch("animerec.llm.groq_client.Groq")
def test_generate_reply_fallback_on_empty_text(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("")

    reply = generate_reply("go", SAMPLE_PREFERENCES, recommendations=SAMPLE_RECS, config=ENABLED_CONFIG)

    assert reply.startswith("Here are some picks")


def test_generate_reply_disabled():
    reply = generate_reply("hi", Preferences(), next_question=FORMAT_QUESTION, config=DISABLED_CONFIG)

    assert reply == FORMAT_QUESTION


def test_generate_reply_without_api_key():
    reply = generate_reply("hi", Preferences(), config=LLMConfig(api_key="", enabled=True))

    assert reply == fallback_reply(None)


def test_fallback_lists_recommendations():
    text = fallback_reply(SAMPLE_RECS)

    assert "1. **Attack on Titan**" in text
    assert "2. **Berserk**" in text


def test_fallback_with_no_matches():
    assert "couldn't find" in fallback_reply([])
