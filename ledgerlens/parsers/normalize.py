"""Institution-agnostic merchant cleanup and keyword categorization.

Extractors run their own institution-specific pre-clean first (location
suffixes, UPC codes, card digit groups, wallet prefixes) and then hand the
result to ``normalize_merchant``.
"""

import re

from ledgerlens.models import TransactionType

# Trailing reference numbers: " 1234567 ..." to end of line
_TRAILING_REFERENCE = re.compile(r"\s+\d{5,}.*$")

# Leading bank transaction codes, possibly stacked ("POS ACH ...")
_BANK_CODES = re.compile(r"^(?:(?:POS|DDA|ACH|PPD|CCD)\s+)+", re.IGNORECASE)

FEES_CATEGORY = "Fees"

# Ordered: first matching category wins
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    (
        "Groceries",
        (
            "wholefds", "whole foods", "kroger", "trader joe", "safeway",
            "publix", "aldi", "patel brothers", "patel brother", "harris teeter",
            "fresh market", "food lion", "wegman", "sprouts", "h-e-b", "market basket",
            "giant", "stop shop", "meijer", "albertsons", "vons", "ralph", "piggly",
            "grocery", "supermarket", "food mart", "fresh fare", "compare foods",
        ),
    ),
    (
        "Dining",
        (
            "restaurant", "kitchen", "grill", "pizza", "sushi", "ramen",
            "taco", "burger", "mcdonald", "chipotle", "panera", "subway",
            "chick-fil", "domino", "doordash", "grubhub", "ubereats", "door dash",
            "uber eats", "postmates", "seamless", "starbucks", "dunkin", "coffee",
            "cafe", "diner", "bistro", "eatery", "barbeque", "bbq", "thai", "chinese",
            "indian restaurant", "desi district", "pho", "wingstop", "five guys",
            "shake shack", "in-n-out", "popeyes", "kfc", "sonic drive", "dairy queen",
            "applebee", "chilis", "olive garden", "red lobster", "ihop", "denny",
            "tst*", "toast", "benihana", "buffalo wild", "outback", "cracker barrel",
            "cheesecake factory", "texas roadhouse", "hooters", "legal sea",
        ),
    ),
    (
        "Subscriptions",
        (
            "netflix", "spotify", "hulu", "disney+", "apple.com/bill",
            "google play", "google one", "google *google", "youtube premium", "youtube music",
            "paramount", "peacock", "hbo", "max.com", "showtime", "audible", "amazon prime",
            "apple music", "pandora", "tidal", "crunchyroll", "fubo",
            "microsoft 365", "dropbox", "icloud", "adobe", "1password", "lastpass",
        ),
    ),
    (
        "Shopping",
        (
            "amazon", "walmart", "target", "costco", "best buy", "ebay",
            "etsy", "apple store", "apple retail", "ikea", "home depot", "lowe",
            "tj maxx", "marshalls", "ross", "nordstrom", "macy", "gap", "old navy",
            "h&m", "zara", "forever 21", "bath body", "victoria secret", "sephora",
            "ulta", "chewy", "petco", "pet smart", "staples", "office depot",
            "dollar tree", "dollar general", "five below",
            "nautica", "gap factory", "banana republic", "j.crew", "ann taylor",
            "dsw", "rack room", "shoe carnival", "famous footwear", "foot locker",
            "burlington coat", "tuesday morning",
        ),
    ),
    (
        "Travel",
        (
            "airline", "airways", "united air", "delta air", "american air",
            "southwest", "jetblue", "alaska air", "spirit air", "frontier air",
            "hotel", "hilton", "marriott", "hyatt", "westin", "sheraton", "ihg",
            "hampton inn", "holiday inn", "airbnb", "vrbo", "expedia", "priceline",
            "booking.com", "hotels.com", "kayak", "travelocity", "hertz", "enterprise rent",
            "avis", "national car", "budget car", "amtrak", "greyhound",
        ),
    ),
    (
        "Transportation",
        (
            "uber", "lyft", "taxi", "transit", "metro", "mta", "bart",
            "parking", "parkmobile", "spothero", "divvy", "citi bike", "lime",
            "bird scooter",
        ),
    ),
    (
        "Gas",
        (
            "bp oil", "bp #", "shell oil", "exxon", "mobil", "chevron",
            "sunoco", "marathon", "citgo", "getty", "speedway", "wawa", "sheetz",
            "kwik trip", "casey", "circle k", "racetrac", "gas station", "fuel",
            "quiktrip", "7-eleven", "pilot flying",
        ),
    ),
    (
        "Healthcare",
        (
            "pharmacy", "cvs", "walgreen", "rite aid", "hospital", "medical",
            "doctor", "dental", "dentist", "vision", "optometric", "health",
            "urgent care", "clinic", "laboratory", "quest diagnostics", "labcorp",
            "kaiser", "blue cross", "aetna", "cigna", "humana", "insurance",
        ),
    ),
    (
        "Utilities",
        (
            "electric", "gas utility", "water utility", "sewage", "waste",
            "comcast", "xfinity", "spectrum", "cox comm", "at&t", "att.com",
            "verizon", "t-mobile", "sprint", "dish network", "directv",
            "internet service", "phone bill",
        ),
    ),
    (
        "Entertainment",
        (
            "amc theatre", "regal cinema", "cinemark", "movie", "concert",
            "ticketmaster", "eventbrite", "live nation", "stub hub", "sports ticket",
            "golf", "bowling", "escape room", "dave buster", "arcade", "museum",
            "zoo", "aquarium", "sea life", "theme park", "six flags", "disney world",
            "legoland", "universal studios", "seaworld",
        ),
    ),
    (
        "Health & Fitness",
        (
            "planet fitness", "la fitness", "equinox", "gold gym", "ymca",
            "anytime fitness", "crossfit", "peloton", "beachbody", "gym", "fitness",
            "yoga", "pilates", "sport", "athletic",
        ),
    ),
    (
        "Education",
        (
            "tuition", "university", "college", "school", "coursera",
            "udemy", "linkedin learning", "skillshare", "pluralsight", "books",
            "textbook", "education", "tutoring", "chegg",
        ),
    ),
]


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def normalize_merchant(description: str | None) -> str | None:
    """
    Clean a raw description into a merchant name.

    Strips trailing reference numbers and leading bank codes
    (POS/DDA/ACH/PPD/CCD), then collapses whitespace. Applying it twice
    gives the same result as applying it once.

    Args:
        description: Raw or institution-pre-cleaned description

    Returns:
        Cleaned merchant name, or None for None input
    """
    if description is None:
        return None

    cleaned = collapse_whitespace(description)
    cleaned = _TRAILING_REFERENCE.sub("", cleaned)
    cleaned = _BANK_CODES.sub("", cleaned)
    return collapse_whitespace(cleaned)


def categorize(merchant_name: str | None, txn_type: TransactionType) -> str | None:
    """
    Map a cleaned merchant name to a coarse spending category.

    Fees and interest always land in "Fees"; credits are never categorized.

    Returns:
        Category name, or None when nothing matches
    """
    if merchant_name is None:
        return None
    if txn_type in (TransactionType.FEE, TransactionType.INTEREST):
        return FEES_CATEGORY
    if txn_type == TransactionType.CREDIT:
        return None

    lower = merchant_name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category

    return None
