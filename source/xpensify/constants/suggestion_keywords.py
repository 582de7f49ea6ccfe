"""Keyword fragments used to suggest a category from a transaction description.

The order of the mapping matters: the first category with a matching
fragment wins, even if a later one would match more fragments.
"""

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Food & Dining": (
        "restaurant",
        "cafe",
        "food",
        "zomato",
        "swiggy",
        "dinner",
        "lunch",
        "breakfast",
        "pizza",
        "coffee",
    ),
    "Shopping": ("amazon", "flipkart", "store", "mall", "shop"),
    "Transportation": ("uber", "ola", "petrol", "fuel", "metro", "bus", "taxi", "train"),
    "Entertainment": ("movie", "cinema", "netflix", "spotify", "game"),
    "Healthcare": ("hospital", "pharmacy", "doctor", "medical", "clinic"),
    "Bills & Utilities": ("electricity", "water", "gas", "internet", "phone", "rent", "bill"),
    "Education": ("school", "college", "course", "tuition", "book"),
    "Salary": ("salary", "payroll", "paycheck"),
    "Freelance": ("freelance", "invoice", "client"),
}
