"""
AI-assisted text utilities for the catalog.

Tagging, classification, summarization and question answering over a
chat-completions service. None of these raise: any failure yields the
configured fallback value.
"""

import logging
import re
from typing import Optional

from .catalog_store import CatalogStore
from .config import AssistantConfig
from .providers.base import ChatProvider, extract_json_object
from .providers.llm import system_prompt
from .types import Item

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({"的", "是", "在", "有", "和", "或", "但", "如果", "因為"})
_KEYWORD_SEPARATORS = re.compile(r"[ ，。？！]")

TAGS_PROMPT = """請為以下書籍描述生成5-8個相關標籤：

描述：{description}

請生成能準確描述書籍主題、類型、特色的標籤。
以JSON格式回答：{{"tags": ["標籤1", "標籤2", ...]}}"""

CATEGORY_PROMPT = """請將以下書籍分類到最合適的類別：

書名：{title}
描述：{description}

請從以下類別中選擇最合適的：
{categories}

只需回答類別名稱。"""

SUMMARY_PROMPT = """請為以下書籍生成一個簡潔的摘要（100-150字）：

書名：{title}
描述：{description}

請突出書籍的核心價值、主要內容和適讀對象。"""

QUESTION_PROMPT = """基於以下圖書館藏書資訊回答問題：

圖書館藏書：
{context}

使用者問題：{question}

請基於圖書館的實際藏書提供準確、有用的回答。如果圖書館沒有相關書籍，請誠實告知並建議可能的替代方案。"""


def extract_keywords(text: str, limit: int = 5) -> list[str]:
    """
    Naive keyword extraction for question grounding.

    Splits on spaces and Chinese punctuation, drops single characters and
    stopwords, and keeps the first ``limit`` tokens in order.
    """
    tokens = _KEYWORD_SEPARATORS.split(text or "")
    keywords = [t for t in tokens if len(t) > 1 and t not in STOPWORDS]
    return keywords[:limit]


class AssistantService:
    """
    Generative helpers for librarians and readers.

    Args:
        chat: Chat provider used for every request
        catalog: Store consulted by ``answer_question`` (optional)
        config: Fallback values and context sizes
    """

    def __init__(
        self,
        chat: ChatProvider,
        catalog: Optional[CatalogStore] = None,
        config: Optional[AssistantConfig] = None,
    ):
        self.chat = chat
        self.catalog = catalog
        self.config = config or AssistantConfig()

    async def _ask(self, role: str, prompt: str) -> Optional[str]:
        """Model text for ``prompt``, or None if the call failed."""
        outcome = await self.chat.complete(system_prompt(role), prompt)
        if not outcome.ok:
            logger.warning("Assistant (%s) fell back: %s", role, outcome.failure)
            return None
        return outcome.value

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    async def generate_tags(self, description: str) -> list[str]:
        """Topic tags for a book description; default tags on any failure."""
        if description is None or not description.strip():
            return list(self.config.default_tags)
        text = await self._ask("標籤生成器", TAGS_PROMPT.format(description=description))
        if text is None:
            return list(self.config.default_tags)
        return self.parse_tags(text)

    def parse_tags(self, text: str) -> list[str]:
        data = extract_json_object(text)
        tags = data.get("tags") if data else None
        if not isinstance(tags, list):
            logger.warning("Tag response has no 'tags' list")
            return list(self.config.default_tags)
        cleaned = [t.strip() for t in tags if isinstance(t, str) and t.strip()]
        return cleaned or list(self.config.default_tags)

    # -------------------------------------------------------------------------
    # Category
    # -------------------------------------------------------------------------

    async def classify_category(self, title: str, description: Optional[str] = None) -> str:
        """One label from the configured vocabulary, or the fallback category."""
        if not (title or "").strip() and not (description or "").strip():
            return self.config.fallback_category
        prompt = CATEGORY_PROMPT.format(
            title=title or "",
            description=description or "",
            categories="、".join([*self.config.categories, self.config.fallback_category]),
        )
        text = await self._ask("書籍分類器", prompt)
        if text is None:
            return self.config.fallback_category
        return self.match_category(text)

    def match_category(self, text: str) -> str:
        """First vocabulary label (in vocabulary order) contained in ``text``."""
        for category in self.config.categories:
            if category in text:
                return category
        return self.config.fallback_category

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    async def summarize(self, title: str, description: Optional[str] = None) -> str:
        """Short summary, returned exactly as the model wrote it."""
        if not (title or "").strip() and not (description or "").strip():
            return self.config.placeholder_summary
        text = await self._ask(
            "摘要生成器",
            SUMMARY_PROMPT.format(title=title or "", description=description or ""),
        )
        if text is None or not text.strip():
            return self.config.placeholder_summary
        return text

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    def relevant_items(self, question: str) -> list[Item]:
        """Catalog items grounding an answer to ``question``."""
        if self.catalog is None:
            return []
        limit = self.config.max_candidate_items
        keywords = extract_keywords(question, self.config.max_keywords)

        def matches(item: Item) -> bool:
            if not keywords:
                return True
            description = item.description or ""
            return any(k in item.title or k in description for k in keywords)

        try:
            return self.catalog.query(matches, limit=limit)
        except Exception as e:
            logger.warning("Catalog lookup failed, answering without context: %s", e)
            return []

    def format_context(self, items: list[Item]) -> str:
        chars = self.config.context_description_chars
        return "\n".join(
            f"《{item.title}》- {(item.description or '')[:chars]}..."
            for item in items[:self.config.max_context_items]
        )

    async def answer_question(self, question: str) -> str:
        """Answer a library question grounded in matching catalog items."""
        if question is None or not question.strip():
            return self.config.apology
        context = self.format_context(self.relevant_items(question))
        text = await self._ask(
            "圖書館助手",
            QUESTION_PROMPT.format(context=context, question=question),
        )
        if text is None or not text.strip():
            return self.config.apology
        return text
