"""This module defines the CategorySuggestionEngine.

It maps a free-text description to a category using keyword fragments. The
suggestion is advisory: callers may always override it.
"""

from collections.abc import Mapping, Sequence

from xpensify.constants.suggestion_keywords import CATEGORY_KEYWORDS
from xpensify.models.categories import Category
from xpensify.providers.config import ConfigProvider


class CategorySuggestionEngine:
    """Suggests a category for a transaction description.

    Categories are checked in the declaration order of the keyword table and
    the first available one with a matching fragment wins. Categories the
    caller cannot choose from are skipped.
    """

    keywords: Mapping[str, Sequence[str]]
    min_description_length: int

    def __init__(
        self,
        keywords: Mapping[str, Sequence[str]] | None = None,
        min_description_length: int | None = None,
    ) -> None:
        """Initializes the engine.

        Args:
            keywords: An ordered mapping from category name to lowercase
                keyword fragments. Defaults to the built-in table.
            min_description_length: Descriptions shorter than this never
                get a suggestion. Defaults to the configured value.
        """
        self.keywords = keywords if keywords is not None else CATEGORY_KEYWORDS
        if min_description_length is None:
            min_description_length = ConfigProvider.get_config().SUGGESTION_MIN_DESCRIPTION_LENGTH
        self.min_description_length = min_description_length

    def suggest(self, description: str | None, available_categories: Sequence[Category]) -> Category | None:
        """Suggests a category for a description.

        Args:
            description: The free-text description of the transaction.
            available_categories: The categories the caller can choose from.

        Returns:
            The first available category whose keywords match, or None.
        """
        if not description:
            return None
        text = description.strip().lower()
        if len(text) < self.min_description_length:
            return None

        by_name = {category.name: category for category in available_categories}
        for category_name, fragments in self.keywords.items():
            category = by_name.get(category_name)
            if category is not None and any(fragment in text for fragment in fragments):
                return category
        return None
