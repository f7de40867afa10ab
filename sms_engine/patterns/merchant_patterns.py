"""
Curated Indian merchant dataset.

Each entry maps a canonical merchant to its aliases, name patterns and a
category/subcategory hint expressed with the default budget names
("Needs" / "Wants" plus a subcategory).
"""

from ..models import MerchantPattern


def _merchant(id, name, aliases, patterns, category, subcategory, confidence):
    return MerchantPattern(
        id=id,
        name=name,
        aliases=tuple(aliases),
        patterns=tuple(patterns),
        category=category,
        subcategory=subcategory,
        confidence=confidence,
    )


DEFAULT_MERCHANT_PATTERNS = (
    # Online shopping
    _merchant("amazon", "Amazon", ["amazon.in", "amazon", "amzn", "amazon pay"],
              [r"amazon", r"\bamzn\b"], "Wants", "Online Shopping", 0.95),
    _merchant("flipkart", "Flipkart", ["flipkart", "flipkart.com", "fkrt"],
              [r"flipkart", r"\bfkrt\b"], "Wants", "Online Shopping", 0.95),
    _merchant("myntra", "Myntra", ["myntra", "myntra.com"],
              [r"myntra"], "Wants", "Online Shopping", 0.95),
    _merchant("ajio", "Ajio", ["ajio", "ajio.com"],
              [r"\bajio\b"], "Wants", "Online Shopping", 0.95),
    _merchant("nykaa", "Nykaa", ["nykaa", "nykaa.com"],
              [r"nykaa"], "Wants", "Online Shopping", 0.95),

    # Food & dining
    _merchant("zomato", "Zomato", ["zomato", "zomato.com"],
              [r"zomato"], "Needs", "Food & Dining", 0.95),
    _merchant("swiggy", "Swiggy", ["swiggy", "swiggy.in"],
              [r"swiggy"], "Needs", "Food & Dining", 0.95),
    _merchant("dominos", "Dominos", ["dominos", "dominos pizza", "domino's"],
              [r"\bdomino'?s?\b"], "Needs", "Food & Dining", 0.9),
    _merchant("pizzahut", "Pizza Hut", ["pizza hut", "pizzahut"],
              [r"pizza\s*hut"], "Needs", "Food & Dining", 0.9),
    _merchant("kfc", "KFC", ["kfc", "kentucky fried chicken"],
              [r"\bkfc\b"], "Needs", "Food & Dining", 0.9),
    _merchant("mcdonalds", "McDonald's", ["mcdonalds", "mcdonald's", "mcd"],
              [r"mcdonald'?s", r"\bmcd\b"], "Needs", "Food & Dining", 0.9),

    # Transportation
    _merchant("uber", "Uber", ["uber", "uber.com", "uber india"],
              [r"\buber\b"], "Needs", "Transportation", 0.95),
    _merchant("ola", "Ola", ["ola", "ola cabs", "olacabs"],
              [r"\bola\b", r"ola\s*cabs"], "Needs", "Transportation", 0.95),
    _merchant("rapido", "Rapido", ["rapido", "rapido bike"],
              [r"rapido"], "Needs", "Transportation", 0.9),
    _merchant("metro", "Metro", ["metro", "delhi metro", "mumbai metro", "bangalore metro"],
              [r"\bmetro\b"], "Needs", "Transportation", 0.8),

    # Entertainment
    _merchant("netflix", "Netflix", ["netflix", "netflix.com"],
              [r"netflix"], "Wants", "Entertainment", 0.95),
    _merchant("spotify", "Spotify", ["spotify", "spotify.com"],
              [r"spotify"], "Wants", "Entertainment", 0.95),
    _merchant("hotstar", "Disney+ Hotstar", ["hotstar", "disney hotstar", "disney+ hotstar"],
              [r"hotstar", r"disney.{0,10}hotstar"], "Wants", "Entertainment", 0.95),
    _merchant("primevideo", "Amazon Prime Video", ["prime video", "amazon prime", "prime"],
              [r"prime\s*video", r"amazon\s*prime"], "Wants", "Entertainment", 0.9),
    _merchant("youtube", "YouTube Premium", ["youtube", "youtube premium", "yt premium"],
              [r"youtube", r"\byt\s*premium"], "Wants", "Entertainment", 0.9),

    # Groceries
    _merchant("bigbasket", "BigBasket", ["bigbasket", "big basket"],
              [r"big\s*basket"], "Needs", "Groceries", 0.95),
    _merchant("grofers", "Blinkit (Grofers)", ["grofers", "blinkit", "grofers.com"],
              [r"grofers", r"blinkit"], "Needs", "Groceries", 0.95),
    _merchant("zepto", "Zepto", ["zepto", "zepto.com"],
              [r"zepto"], "Needs", "Groceries", 0.95),
    _merchant("dmart", "DMart", ["dmart", "d mart", "avenue supermarts"],
              [r"\bd\s*mart\b"], "Needs", "Groceries", 0.9),
    _merchant("reliance", "Reliance Fresh", ["reliance fresh", "reliance retail", "reliance"],
              [r"reliance\s*(?:fresh|retail|smart)"], "Needs", "Groceries", 0.8),

    # Fuel
    _merchant("iocl", "Indian Oil", ["indian oil", "iocl", "indianoil"],
              [r"indian\s*oil", r"\biocl\b"], "Needs", "Fuel", 0.9),
    _merchant("bpcl", "Bharat Petroleum", ["bharat petroleum", "bpcl", "bp"],
              [r"bharat\s*petroleum", r"\bbpcl\b"], "Needs", "Fuel", 0.9),
    _merchant("hpcl", "Hindustan Petroleum", ["hindustan petroleum", "hpcl", "hp"],
              [r"hindustan\s*petroleum", r"\bhpcl\b"], "Needs", "Fuel", 0.9),
    _merchant("shell", "Shell", ["shell", "shell petrol"],
              [r"\bshell\b"], "Needs", "Fuel", 0.9),

    # Healthcare
    _merchant("apollo", "Apollo Pharmacy", ["apollo", "apollo pharmacy", "apollo hospitals"],
              [r"apollo"], "Needs", "Healthcare", 0.9),
    _merchant("medplus", "MedPlus", ["medplus", "med plus"],
              [r"med\s*plus"], "Needs", "Healthcare", 0.9),
    _merchant("pharmeasy", "PharmEasy", ["pharmeasy", "pharm easy"],
              [r"pharm\s*easy"], "Needs", "Healthcare", 0.9),
    _merchant("netmeds", "Netmeds", ["netmeds", "net meds"],
              [r"net\s*meds"], "Needs", "Healthcare", 0.9),

    # Digital payments
    _merchant("paytm", "Paytm", ["paytm", "paytm payments"],
              [r"paytm"], "Needs", "Digital Payments", 0.95),
    _merchant("phonepe", "PhonePe", ["phonepe", "phone pe"],
              [r"phone\s*pe\b"], "Needs", "Digital Payments", 0.95),
    _merchant("googlepay", "Google Pay", ["google pay", "gpay", "g pay"],
              [r"google\s*pay", r"\bg\s?pay\b"], "Needs", "Digital Payments", 0.95),
    _merchant("mobikwik", "MobiKwik", ["mobikwik", "mobi kwik"],
              [r"mobi\s*kwik"], "Needs", "Digital Payments", 0.9),

    # Utilities
    _merchant("electricity", "Electricity Bill", ["electricity", "power", "bescom", "mseb", "kseb"],
              [r"electricity", r"\bpower\b", r"\bbescom\b", r"\bmseb\b", r"\bkseb\b"],
              "Needs", "Utilities", 0.8),
    _merchant("water", "Water Bill", ["water", "water bill", "bwssb"],
              [r"\bwater\b", r"\bbwssb\b"], "Needs", "Utilities", 0.8),
    _merchant("gas", "Gas Bill", ["gas", "lpg", "cooking gas"],
              [r"\bgas\b", r"\blpg\b", r"cooking\s*gas"], "Needs", "Utilities", 0.8),

    # Phone & internet
    _merchant("airtel", "Airtel", ["airtel", "bharti airtel"],
              [r"airtel"], "Needs", "Phone & Internet", 0.9),
    _merchant("jio", "Jio", ["jio", "reliance jio"],
              [r"\bjio\b"], "Needs", "Phone & Internet", 0.9),
    _merchant("vodafone", "Vi (Vodafone Idea)", ["vodafone", "vi", "vodafone idea"],
              [r"vodafone", r"\bvi\b"], "Needs", "Phone & Internet", 0.9),
    _merchant("bsnl", "BSNL", ["bsnl", "bharat sanchar"],
              [r"\bbsnl\b", r"bharat\s*sanchar"], "Needs", "Phone & Internet", 0.9),

    # Education
    _merchant("byjus", "BYJU'S", ["byjus", "byju's"],
              [r"byju'?s"], "Needs", "Education", 0.9),
    _merchant("unacademy", "Unacademy", ["unacademy"],
              [r"unacademy"], "Needs", "Education", 0.9),
    _merchant("vedantu", "Vedantu", ["vedantu"],
              [r"vedantu"], "Needs", "Education", 0.9),

    # Insurance
    _merchant("lic", "LIC", ["lic", "life insurance corporation"],
              [r"\blic\b", r"life\s*insurance\s*corporation"], "Needs", "Insurance", 0.9),
    _merchant("icici_prudential", "ICICI Prudential", ["icici prudential", "icici pru"],
              [r"icici\s*prudential", r"icici\s*pru\b"], "Needs", "Insurance", 0.9),

    # Cash and card-present
    _merchant("atm", "ATM Withdrawal", ["atm", "cash withdrawal"],
              [r"\batm\b", r"cash\s*withdrawal"], "Needs", "Cash Withdrawal", 0.8),
    _merchant("pos", "POS Transaction", ["pos", "point of sale"],
              [r"\bpos\b", r"point\s*of\s*sale"], "Needs", "Other", 0.6),
)

# Bare domain stem -> canonical merchant name
KNOWN_MERCHANT_DOMAINS = {
    "amazon": "Amazon",
    "flipkart": "Flipkart",
    "myntra": "Myntra",
    "zomato": "Zomato",
    "swiggy": "Swiggy",
    "uber": "Uber",
    "ola": "Ola",
    "paytm": "Paytm",
    "phonepe": "PhonePe",
    "googlepay": "Google Pay",
    "netflix": "Netflix",
    "spotify": "Spotify",
    "hotstar": "Disney+ Hotstar",
}

