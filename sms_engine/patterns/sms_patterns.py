"""
SMS Pattern Tables.

Regular expressions and keyword lists used by the field extractors, the
account matcher and the categorizer. Tables are ordered; earlier entries are
the more reliable shapes. Every quantifier is bounded.
"""

# =============================================================================
# AMOUNTS
# =============================================================================

CURRENCY_TOKEN = r"(?:INR|Rs\.?|₹)"

# Indian or western thousands grouping, or a plain run of digits
AMOUNT_NUMBER = r"(\d{1,3}(?:,\d{2,3}){1,5}(?:\.\d{1,2})?|\d{1,12}(?:\.\d{1,2})?)(?!\d)"

AMOUNT_PATTERNS = [
    {
        "name": "currency_prefix",
        "regex": rf"(?<![A-Za-z]){CURRENCY_TOKEN}\s{{0,3}}{AMOUNT_NUMBER}",
        "bonus": 0.3,
    },
    {
        "name": "currency_suffix",
        "regex": rf"(?<![\d,.]){AMOUNT_NUMBER}\s{{0,3}}(?:INR|Rs\.?|₹|rupees)(?![A-Za-z])",
        "bonus": 0.25,
    },
    {
        "name": "keyword_preceded",
        "regex": (
            r"\b(?:amount|amt|sum|total|paid|spent|debited|credited|withdrawn|deposited)"
            rf"[\s:]{{0,5}}(?:of\s{{1,3}})?(?:{CURRENCY_TOKEN}\s{{0,3}})?{AMOUNT_NUMBER}"
        ),
        "bonus": 0.2,
    },
    {
        "name": "contextual",
        "regex": rf"\b(?:for|worth|value)\s{{1,3}}(?:of\s{{1,3}})?(?:{CURRENCY_TOKEN}\s{{0,3}})?{AMOUNT_NUMBER}",
        "bonus": 0.1,
    },
]

AMOUNT_BASE_CONFIDENCE = 0.5

# Substring keywords looked for around a matched amount
AMOUNT_KEYWORDS = [
    "amount", "amt", "sum", "total", "paid", "spent", "debited", "credited",
    "withdrawn", "deposited", "charged", "billed", "cost", "price", "value",
    "worth", "for", "of",
]

FALLBACK_NUMBER_PATTERN = r"(?<![\d,.])(\d{1,3}(?:,\d{2,3}){1,5}(?:\.\d{1,2})?|\d{1,9}(?:\.\d{1,2})?)(?![\d,]?\d)"
FALLBACK_AMOUNT_CONTEXT = r"(?:pay|spend|cost|price|bill|charge|debit|credit)"

# =============================================================================
# DATES
# =============================================================================

MONTH_TOKEN = (
    r"(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

MONTH_NAMES = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# "order" names the group layout: d/m/y, y/m/d, d/mon/y or mon/d/y
DATE_PATTERNS = [
    {
        "name": "dd_mm_yyyy",
        "regex": r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})\b",
        "order": "dmy",
        "confidence": 0.9,
        "named_month": False,
    },
    {
        "name": "dd_mm_yy",
        "regex": r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{2})\b",
        "order": "dmy",
        "confidence": 0.85,
        "named_month": False,
    },
    {
        "name": "dd_mon_yyyy",
        "regex": rf"\b(\d{{1,2}})(?:st|nd|rd|th)?[\s\-]{{1,3}}{MONTH_TOKEN}[\s\-,]{{1,3}}(\d{{4}}|\d{{2}})\b",
        "order": "d_mon_y",
        "confidence": 0.95,
        "named_month": True,
    },
    {
        "name": "mon_dd_yyyy",
        "regex": rf"\b{MONTH_TOKEN}\s{{1,3}}(\d{{1,2}})(?:st|nd|rd|th)?,?\s{{1,3}}(\d{{4}})\b",
        "order": "mon_d_y",
        "confidence": 0.9,
        "named_month": True,
    },
    {
        "name": "iso",
        "regex": r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b",
        "order": "ymd",
        "confidence": 0.95,
        "named_month": False,
    },
    {
        "name": "dd_dot_mm_yyyy",
        "regex": r"\b(\d{1,2})\.(\d{1,2})\.(\d{4})\b",
        "order": "dmy",
        "confidence": 0.85,
        "named_month": False,
    },
]

DATE_KEYWORDS = ["on", "dated", "dt", "date", "transaction date", "txn date", "processed on"]
RECENCY_KEYWORDS = ["today", "now", "just", "recent", "latest", "current"]
TIME_PATTERN = r"\b([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?\b"

# =============================================================================
# TRANSACTION TYPES
# =============================================================================

TRANSACTION_TYPE_PATTERNS = [
    {
        "type": "debit",
        "keywords": ["debit", "debited", "spent", "paid", "purchase", "withdrawn", "withdraw", "charged"],
        "regex_patterns": [
            r"\b(?:debit|debited|spent|paid|purchase|withdrawn|withdraw|charged)\b",
            r"\b(?:rs\.?|inr|₹)\s{0,3}\d+.{0,60}?(?:debit|debited|spent|paid|charged)\b",
            r"\b(?:amount|amt).{0,60}?(?:debit|debited|spent|paid|charged)\b",
        ],
    },
    {
        "type": "credit",
        "keywords": ["credit", "credited", "received", "deposited", "deposit", "refund", "refunded", "cashback"],
        "regex_patterns": [
            r"\b(?:credit|credited|received|deposited|deposit|refund|refunded|cashback)\b",
            r"\b(?:rs\.?|inr|₹)\s{0,3}\d+.{0,60}?(?:credit|credited|received|deposited|refund)\b",
            r"\b(?:amount|amt).{0,60}?(?:credit|credited|received|deposited|refund)\b",
        ],
    },
    {
        "type": "transfer",
        "keywords": ["transfer", "transferred", "sent", "upi", "imps", "neft", "rtgs"],
        "regex_patterns": [
            r"\b(?:transfer|transferred|sent|upi|imps|neft|rtgs)\b",
            r"\b(?:fund|money).{0,40}?(?:transfer|transferred|sent)\b",
            r"\bupi.{0,40}?(?:transfer|payment|sent)\b",
        ],
    },
    {
        "type": "payment",
        "keywords": ["payment", "bill payment", "bill paid", "utility payment", "loan payment"],
        "regex_patterns": [
            r"\b(?:payment|bill\s+payment|bill\s+paid|utility\s+payment|loan\s+payment)\b",
            r"\b(?:electricity|water|gas|mobile|internet).{0,40}?(?:payment|paid|bill)\b",
        ],
    },
    {
        "type": "withdrawal",
        "keywords": ["withdrawal", "atm", "cash withdrawal", "withdrew"],
        "regex_patterns": [
            r"\b(?:withdrawal|atm|cash\s+withdrawal|withdrew)\b",
            r"\batm.{0,40}?(?:withdrawal|withdrew|cash)\b",
        ],
    },
    {
        "type": "deposit",
        "keywords": ["deposit", "deposited", "cash deposit", "cheque deposit"],
        "regex_patterns": [
            r"\b(?:deposit|deposited|cash\s+deposit|cheque\s+deposit)\b",
            r"\b(?:cash|cheque).{0,40}?(?:deposit|deposited)\b",
        ],
    },
    {
        "type": "refund",
        "keywords": ["refund", "refunded", "reversal", "reversed", "chargeback"],
        "regex_patterns": [
            r"\b(?:refund|refunded|reversal|reversed|chargeback)\b",
            r"\b(?:transaction|payment).{0,40}?(?:refund|refunded|reversal|reversed)\b",
        ],
    },
]

TYPE_BASE_CONFIDENCE = 0.6
TYPE_KEYWORD_BONUS = 0.2
TYPE_REGEX_BONUS = 0.15

# Supporting words that raise confidence for a type (0.05 each, capped)
TYPE_CONTEXT_KEYWORDS = {
    "debit": ["spent", "purchase", "buy", "bought", "shop", "store", "merchant", "online", "pos"],
    "credit": ["salary", "income", "bonus", "interest", "dividend", "cashback", "reward"],
    "transfer": ["to", "from", "beneficiary", "account holder", "mobile number"],
    "payment": ["bill", "utility", "loan", "emi", "insurance", "subscription"],
    "withdrawal": ["atm", "cash", "branch"],
    "deposit": ["branch", "cheque", "cash", "counter"],
    "refund": ["cancelled", "failed", "unsuccessful", "error"],
}

TYPE_CURRENCY_AMOUNT = r"(?:rs\.?|inr|₹)\s{0,3}\d+"

# Per-type special cases: (regex, bonus)
TYPE_SPECIAL_BONUSES = {
    "debit": (r"\b(?:spent|purchase)\b", 0.05),
    "credit": (r"\b(?:salary|refund)\b", 0.1),
    "transfer": (r"\b(?:upi|imps|neft|rtgs)\b", 0.15),
    "withdrawal": (r"\batm\b", 0.2),
}

# Broader indicators used when no keyword or regex fires; substring checks
TYPE_INFERENCE_RULES = [
    {"type": "debit", "indicators": ["at ", "from ", "merchant", "store", "shop", "online", "pos"], "confidence": 0.4},
    {"type": "credit", "indicators": ["salary", "bonus", "interest", "dividend", "cashback"], "confidence": 0.5},
    {"type": "transfer", "indicators": ["mobile number", "beneficiary", "account holder"], "confidence": 0.4},
    {"type": "withdrawal", "indicators": ["cash", "branch withdrawal"], "confidence": 0.3},
]

TYPE_INFERENCE_CAP = 0.7

# =============================================================================
# MERCHANTS
# =============================================================================

MERCHANT_STOP_WORDS = (
    "on", "for", "via", "using", "through", "dated", "dt", "ref", "txn",
    "with", "avl", "avbl", "bal", "is", "has", "was",
)

_MERCHANT_BODY = r"([A-Za-z0-9][A-Za-z0-9\s.\-_&'*]{0,59}?)"
_MERCHANT_END = (
    r"(?=\s+(?:" + "|".join(MERCHANT_STOP_WORDS) + r")\b"
    r"|\s*[,;:!?()]|\.\s|\.?\s*$)"
)


def _after(lead: str) -> str:
    return rf"\b{lead}\s{{1,3}}{_MERCHANT_BODY}{_MERCHANT_END}"


# "bonus" is added to the 0.4 merchant base confidence
MERCHANT_TEMPLATES = [
    {"name": "at", "regex": _after("at"), "bonus": 0.3, "ignore_case": True},
    {"name": "from", "regex": _after("from"), "bonus": 0.3, "ignore_case": True},
    {"name": "to", "regex": _after("to"), "bonus": 0.3, "ignore_case": True},
    {"name": "paid_to", "regex": _after(r"paid\s{1,3}to"), "bonus": 0.25, "ignore_case": True},
    {"name": "spent_at", "regex": _after(r"spent\s{1,3}at"), "bonus": 0.25, "ignore_case": True},
    {"name": "purchase_at", "regex": _after(r"purchase\s{1,3}at"), "bonus": 0.25, "ignore_case": True},
    {"name": "transaction_at", "regex": _after(r"transaction\s{1,3}at"), "bonus": 0.25, "ignore_case": True},
    {"name": "debited_by", "regex": _after(r"debited\s{1,3}by"), "bonus": 0.2, "ignore_case": True},
    {"name": "charged_by", "regex": _after(r"charged\s{1,3}by"), "bonus": 0.2, "ignore_case": True},
    {
        "name": "upi",
        "regex": r"\bUPI[/\-](?:[A-Z0-9]{2,4}/)?(?:\d{4,16}/)?([A-Za-z][A-Za-z0-9.\-_&]{1,40})(?=[/@\s]|$)",
        "bonus": 0.35,
        "ignore_case": True,
    },
    {
        "name": "domain",
        "regex": r"\b((?:www\.)?[A-Za-z0-9\-]{2,40}\.(?:co\.in|com|in|org|net))\b",
        "bonus": 0.3,
        "ignore_case": True,
    },
    {"name": "code", "regex": r"\b([A-Z]{3,20}[0-9A-Z]{0,10})\b", "bonus": 0.1, "ignore_case": False},
]

MERCHANT_BASE_CONFIDENCE = 0.4

# A candidate containing any of these words is not a merchant
MERCHANT_EXCLUDE_WORDS = frozenset([
    "bank", "card", "account", "transaction", "payment", "debit", "credit",
    "amount", "balance", "available", "limit", "date", "time", "sms", "alert",
    "notification", "service", "charges", "fee", "interest", "minimum", "due",
    "statement", "bill", "invoice", "receipt", "confirmation", "reference",
    "number", "code", "id", "ref", "txn", "utr", "rrn", "auth", "approval",
    "successful", "failed", "pending", "processed", "completed", "cancelled",
    "declined", "expired", "invalid", "error", "please", "contact", "call",
    "visit", "website", "app", "mobile", "online", "internet", "digital",
    "thank", "you", "thanks", "regards", "team", "customer", "support",
    "help", "desk", "center", "centre",
    # message filler
    "your", "this", "dear", "has", "been", "is", "ending", "xx", "xxxx", "ac",
    "savings", "current", "salary", "otp", "avl", "avbl", "bal", "emi", "info",
    # currencies and payment rails
    "inr", "rs", "upi", "imps", "neft", "rtgs", "vpa",
    # bank short names
    "sbi", "hdfc", "icici", "axis", "kotak", "pnb", "bob", "canara", "idbi",
    "yes", "indusind", "rbl", "bandhan", "idfc", "federal",
])

MERCHANT_GENERIC_WORDS = ["store", "shop", "mart", "center", "service"]
MERCHANT_CONTEXT_PATTERN = r"(?:transaction|payment|purchase|spent|paid|debit|credit)"

MERCHANT_DATE_SHAPE = r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"
MERCHANT_TIME_SHAPE = r"\d{1,2}:\d{2}(?::\d{2})?"

FALLBACK_MERCHANT_PATTERN = r"\b([A-Z][a-zA-Z]{2,20}(?:\s[A-Z][a-zA-Z]{1,20}){0,3})\b"
FALLBACK_MERCHANT_CONTEXT = r"(?:pay|spend|buy|purchase|transaction|debit|credit)"

# =============================================================================
# ACCOUNTS
# =============================================================================

# Canonical institution name -> short forms seen in messages
BANK_NAME_ALIASES = {
    "state bank of india": ["sbi", "state bank"],
    "hdfc bank": ["hdfc"],
    "icici bank": ["icici"],
    "axis bank": ["axis"],
    "kotak mahindra bank": ["kotak"],
    "punjab national bank": ["pnb"],
    "bank of baroda": ["bob", "baroda"],
    "canara bank": ["canara"],
    "union bank of india": ["union bank"],
    "bank of india": ["boi"],
    "central bank of india": ["central bank"],
    "indian bank": ["indian bank"],
    "punjab and sind bank": ["psb"],
    "idbi bank": ["idbi"],
    "federal bank": ["federal"],
    "south indian bank": ["sib"],
    "karur vysya bank": ["kvb"],
    "city union bank": ["cub"],
    "yes bank": ["yesbank"],
    "indusind bank": ["indusind"],
    "rbl bank": ["rbl"],
    "bandhan bank": ["bandhan"],
    "idfc first bank": ["idfc"],
}

# Institution names minus "bank" that are also everyday words
AMBIGUOUS_BANK_ALIASES = frozenset(["yes", "indian"])

INSTITUTION_CONTEXT_KEYWORDS = ["debit", "credit", "card", "account", "transaction"]
ACCOUNT_NAME_CONTEXT_KEYWORDS = ["account", "card", "savings", "current", "credit"]

# Loose account phrasing; the last four digits of the captured run are used
ACCOUNT_DIGIT_PATTERNS = [
    r"\b(?:account|a/c|acct)[\s\w]{0,25}?[xX*]{0,8}(\d{4,18})\b",
    r"\b(?:savings|current)[\s\w]{0,25}?[xX*]{0,8}(\d{4,18})\b",
]

CARD_DIGIT_PATTERNS = [
    r"\b(?:credit|debit)\s{1,3}card[\s\w]{0,25}?[xX*]{0,8}(\d{4})\b",
    r"\bcard[\s\w]{0,25}?(?:ending|[xX*]{2,8})?\s{0,3}(\d{4})\b",
    r"\b(?:visa|master(?:card)?|rupay)[\s\w]{0,25}?[xX*]{0,8}(\d{4})\b",
]

ACCOUNT_PATTERN_FACTOR = 0.8
CARD_PATTERN_FACTOR = 0.9

# =============================================================================
# CATEGORIES
# =============================================================================

# Merchant-name keyword rules (confidence is scaled by merchant confidence)
MERCHANT_CATEGORY_RULES = [
    {
        "keywords": ["amazon", "flipkart", "myntra", "ajio", "nykaa"],
        "category": "Wants",
        "subcategory": "Online Shopping",
        "confidence": 0.9,
    },
    {
        "keywords": ["zomato", "swiggy", "dominos", "pizza", "restaurant"],
        "category": "Needs",
        "subcategory": "Food & Dining",
        "confidence": 0.9,
    },
    {
        "keywords": ["uber", "ola", "rapido", "taxi", "metro"],
        "category": "Needs",
        "subcategory": "Transportation",
        "confidence": 0.9,
    },
]

# Common verticals matched on the canonical merchant name
CATEGORY_KEYWORD_PHRASES = [
    {"keywords": ["amazon", "flipkart", "myntra", "shopping"], "category": "Wants", "subcategory": "Online Shopping"},
    {"keywords": ["zomato", "swiggy", "restaurant", "food"], "category": "Needs", "subcategory": "Food & Dining"},
    {"keywords": ["uber", "ola", "taxi", "transport"], "category": "Needs", "subcategory": "Transportation"},
    {"keywords": ["netflix", "spotify", "hotstar", "subscription"], "category": "Wants", "subcategory": "Entertainment"},
    {"keywords": ["grocery", "supermarket", "mart"], "category": "Needs", "subcategory": "Groceries"},
    {"keywords": ["petrol", "fuel", "gas"], "category": "Needs", "subcategory": "Fuel"},
    {"keywords": ["medical", "hospital", "pharmacy"], "category": "Needs", "subcategory": "Healthcare"},
    {"keywords": ["electricity", "water", "gas", "utility"], "category": "Needs", "subcategory": "Utilities"},
    {"keywords": ["mobile", "internet", "broadband"], "category": "Needs", "subcategory": "Phone & Internet"},
]

CATEGORY_PHRASE_CONFIDENCE = 0.7
