"""Keyword categorization of transactions.

Rules are plain substring checks against the lower-cased description and
merchant name. Ordering matters: the first rule with a matching keyword wins,
so "TESCO EXPRESS AMAZON PRIME" is Groceries, not Shopping.
"""

from spendwise.models import Category, IncomeCategory, Transaction

# Ordering matters: earlier matches win.
CATEGORY_RULES: tuple[tuple[Category, frozenset[str]], ...] = (
    (Category.GROCERIES, frozenset({"tesco", "sainsbury", "asda"})),
    # Fuel and fares
    (Category.TRANSPORT, frozenset({"shell", "petrol", "fuel"})),
    (Category.SUBSCRIPTIONS, frozenset({"netflix", "spotify", "disney"})),
    (Category.DINING, frozenset({"coffee", "starbucks", "costa"})),
    (Category.SHOPPING, frozenset({"amazon"})),
    (Category.BILLS, frozenset({"rent", "council", "gas", "electric", "internet"})),
    # Public transport
    (Category.TRANSPORT, frozenset({"bus", "tfl"})),
)

SALARY_KEYWORDS = frozenset({"salary", "payroll"})
INCOME_LABELS = frozenset({"income", "salary"})


def _match(text: str, keywords: frozenset[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize(transaction: Transaction) -> Category:
    """Return the spending category for a transaction.

    Never raises. Transactions with neither a description nor a merchant name
    fall through to Other.
    """
    description = (transaction.description or "").lower()
    merchant = (transaction.merchant_name or "").lower()

    for category, keywords in CATEGORY_RULES:
        if _match(description, keywords) or _match(merchant, keywords):
            return category

    return Category.OTHER


def resolve_category(transaction: Transaction) -> Category:
    """Use the transaction's own category label when it names a known
    category, otherwise categorize by keyword."""
    return Category.from_label(transaction.category) or categorize(transaction)


def categorize_income(transaction: Transaction) -> IncomeCategory:
    """Return the income category for a credit."""
    if (transaction.category or "").strip().lower() in INCOME_LABELS:
        return IncomeCategory.SALARY

    description = (transaction.description or "").lower()
    merchant = (transaction.merchant_name or "").lower()
    if _match(description, SALARY_KEYWORDS) or _match(merchant, SALARY_KEYWORDS):
        return IncomeCategory.SALARY

    return IncomeCategory.OTHER_INCOME
