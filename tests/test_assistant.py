"""Tests for AssistantService: tags, category, summary, questions."""

import sqlite3

import pytest

from bookvec.assistant import AssistantService, extract_keywords
from bookvec.catalog_store import SQLiteCatalogStore
from bookvec.config import AssistantConfig
from bookvec.types import Item

from tests.conftest import MockChatProvider

DEFAULT_TAGS = ["一般圖書", "推薦閱讀"]
APOLOGY = "抱歉，目前無法回答您的問題。請稍後再試或聯繫圖書館管理員。"


class TestGenerateTags:
    @pytest.mark.asyncio
    async def test_parses_tags(self):
        chat = MockChatProvider('標籤如下：{"tags": ["科幻", " 經典 ", "", 7, "沙漠"]}')
        tags = await AssistantService(chat).generate_tags("沙漠星球上的史詩")
        assert tags == ["科幻", "經典", "沙漠"]
        assert chat.requests[0]["system"] == "你是一個標籤生成器，請提供準確且有用的回答。"
        assert "沙漠星球上的史詩" in chat.requests[0]["user"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["no json here", '{"tags": "科幻"}', '{"labels": []}', '{"tags": []}', "{oops}"])
    async def test_malformed_reply_gives_defaults(self, reply):
        tags = await AssistantService(MockChatProvider(reply)).generate_tags("desc")
        assert tags == DEFAULT_TAGS

    @pytest.mark.asyncio
    async def test_failed_call_gives_defaults(self):
        assert await AssistantService(MockChatProvider(None)).generate_tags("desc") == DEFAULT_TAGS

    @pytest.mark.asyncio
    async def test_empty_description_makes_no_call(self):
        chat = MockChatProvider('{"tags": ["x"]}')
        assert await AssistantService(chat).generate_tags("  ") == DEFAULT_TAGS
        assert chat.requests == []

    @pytest.mark.asyncio
    async def test_defaults_are_configurable(self):
        config = AssistantConfig(default_tags=("general",))
        assert await AssistantService(MockChatProvider(None), config=config).generate_tags("d") == ["general"]


class TestClassifyCategory:
    @pytest.mark.asyncio
    async def test_label_inside_sentence(self):
        chat = MockChatProvider("這本書屬於科學技術類")
        assert await AssistantService(chat).classify_category("時間簡史", "宇宙學") == "科學技術"
        assert chat.requests[0]["system"] == "你是一個書籍分類器，請提供準確且有用的回答。"

    @pytest.mark.asyncio
    async def test_no_label_gives_other(self):
        assert await AssistantService(MockChatProvider("我不確定")).classify_category("T", "D") == "其他"

    @pytest.mark.asyncio
    async def test_first_label_in_vocabulary_order(self):
        chat = MockChatProvider("可能是歷史傳記，也可能是文學小說")
        assert await AssistantService(chat).classify_category("T", "D") == "文學小說"

    @pytest.mark.asyncio
    async def test_failure_gives_other(self):
        assert await AssistantService(MockChatProvider(None)).classify_category("T", "D") == "其他"

    @pytest.mark.asyncio
    async def test_prompt_lists_vocabulary(self):
        chat = MockChatProvider("其他")
        await AssistantService(chat).classify_category("T", "D")
        assert "文學小說、科學技術" in chat.requests[0]["user"]
        assert chat.requests[0]["user"].count("其他") == 1


class TestSummarize:
    @pytest.mark.asyncio
    async def test_returns_text_verbatim(self):
        reply = "  一部關於沙漠星球的史詩。\n"
        assert await AssistantService(MockChatProvider(reply)).summarize("Dune", "d") == reply

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [None, "", "   "])
    async def test_placeholder_on_failure_or_blank(self, reply):
        assert await AssistantService(MockChatProvider(reply)).summarize("Dune", "d") == "暫無摘要資訊。"


class TestExtractKeywords:
    def test_splits_and_filters(self):
        assert extract_keywords("有沒有 歷史 的書，推薦？謝謝！") == ["有沒有", "歷史", "的書", "推薦", "謝謝"]

    def test_drops_single_chars_and_stopwords(self):
        assert extract_keywords("的 是 如果 因為 a 科學") == ["科學"]

    def test_keeps_first_five(self):
        assert extract_keywords("aa bb cc dd ee ff gg") == ["aa", "bb", "cc", "dd", "ee"]

    def test_empty(self):
        assert extract_keywords("") == []


class TestAnswerQuestion:
    @pytest.fixture
    def library(self, catalog_store):
        catalog_store.create(Item(title="沙丘", description="沙漠星球" + "很長的描述" * 40))
        catalog_store.create(Item(title="歷史的教訓", description="歷史學家的反思"))
        catalog_store.create(Item(title="烹飪入門", description=None))
        return catalog_store

    @pytest.mark.asyncio
    async def test_context_from_matching_items(self, library):
        chat = MockChatProvider("館內有《歷史的教訓》。")
        answer = await AssistantService(chat, library).answer_question("有 歷史 書嗎？")
        assert answer == "館內有《歷史的教訓》。"
        prompt = chat.requests[0]["user"]
        assert "《歷史的教訓》- 歷史學家的反思..." in prompt
        assert "沙丘" not in prompt
        assert chat.requests[0]["system"] == "你是一個圖書館助手，請提供準確且有用的回答。"

    @pytest.mark.asyncio
    async def test_any_keyword_matches(self, library):
        service = AssistantService(MockChatProvider(), library)
        titles = [i.title for i in service.relevant_items("沙漠 烹飪")]
        assert titles == ["沙丘", "烹飪入門"]

    @pytest.mark.asyncio
    async def test_description_truncated(self, library):
        chat = MockChatProvider("ok")
        await AssistantService(chat, library).answer_question("沙丘")
        line = next(l for l in chat.requests[0]["user"].splitlines() if l.startswith("《沙丘》"))
        assert line == "《沙丘》- " + ("沙漠星球" + "很長的描述" * 40)[:100] + "..."

    @pytest.mark.asyncio
    async def test_no_keywords_uses_first_items(self, library):
        service = AssistantService(MockChatProvider(), library)
        assert len(service.relevant_items("？")) == 3

    @pytest.mark.asyncio
    async def test_context_capped_at_five(self, catalog_store):
        for n in range(12):
            catalog_store.create(Item(title=f"科學 {n}"))
        chat = MockChatProvider("ok")
        service = AssistantService(chat, catalog_store)
        assert len(service.relevant_items("科學")) == 10
        await service.answer_question("科學")
        assert chat.requests[0]["user"].count("《科學") == 5

    @pytest.mark.asyncio
    async def test_failure_gives_apology(self, library):
        assert await AssistantService(MockChatProvider(None), library).answer_question("歷史") == APOLOGY

    @pytest.mark.asyncio
    async def test_without_catalog(self):
        chat = MockChatProvider("沒有館藏資訊")
        assert await AssistantService(chat).answer_question("歷史") == "沒有館藏資訊"

    @pytest.mark.asyncio
    async def test_empty_question(self):
        chat = MockChatProvider("x")
        assert await AssistantService(chat).answer_question(" ") == APOLOGY
        assert chat.requests == []

    @pytest.mark.asyncio
    async def test_store_failure_answers_without_context(self, caplog):
        class BrokenStore(SQLiteCatalogStore):
            def query(self, predicate, limit=None):
                raise sqlite3.OperationalError("no such table: books")

        chat = MockChatProvider("目前無法查詢館藏。")
        with caplog.at_level("WARNING", logger="bookvec.assistant"):
            answer = await AssistantService(chat, BrokenStore(":memory:")).answer_question("推薦 科幻 小說")
        assert answer == "目前無法查詢館藏。"
        assert "圖書館藏書：\n\n使用者問題" in chat.requests[0]["user"]
        assert "Catalog lookup failed" in caplog.text
