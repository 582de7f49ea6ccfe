"""The default category catalog seeded by `xpensify db seed`."""

from xpensify.models.categories import NewCategory, TransactionType

FALLBACK_CATEGORY_NAMES: dict[TransactionType, str] = {
    TransactionType.EXPENSE: "Other",
    TransactionType.INCOME: "Other Income",
}

DEFAULT_CATEGORIES: tuple[NewCategory, ...] = (
    NewCategory(name="Food & Dining", type=TransactionType.EXPENSE, icon="utensils", color="#F97316"),
    NewCategory(name="Shopping", type=TransactionType.EXPENSE, icon="shopping-bag", color="#EC4899"),
    NewCategory(name="Transportation", type=TransactionType.EXPENSE, icon="car", color="#3B82F6"),
    NewCategory(name="Entertainment", type=TransactionType.EXPENSE, icon="film", color="#8B5CF6"),
    NewCategory(name="Bills & Utilities", type=TransactionType.EXPENSE, icon="receipt", color="#EAB308"),
    NewCategory(name="Healthcare", type=TransactionType.EXPENSE, icon="heart-pulse", color="#EF4444"),
    NewCategory(name="Education", type=TransactionType.EXPENSE, icon="graduation-cap", color="#14B8A6"),
    NewCategory(name="Other", type=TransactionType.EXPENSE, icon="tag", color="#64748B"),
    NewCategory(name="Salary", type=TransactionType.INCOME, icon="briefcase", color="#22C55E"),
    NewCategory(name="Freelance", type=TransactionType.INCOME, icon="laptop", color="#10B981"),
    NewCategory(name="Investments", type=TransactionType.INCOME, icon="trending-up", color="#0EA5E9"),
    NewCategory(name="Gifts", type=TransactionType.INCOME, icon="gift", color="#F43F5E"),
    NewCategory(name="Other Income", type=TransactionType.INCOME, icon="tag", color="#64748B"),
)
