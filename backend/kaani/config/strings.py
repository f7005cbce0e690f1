# /kaani/config/strings.py

# This file contains all user-facing and keyword strings, keyed by
# (dialect, concept) so new dialects are added here instead of in the
# engine's string-matching code.

DEFAULT_DIALECT = "english"

# --- Boolean slot keywords (matched on word boundaries, all dialects) ---
BOOLEAN_KEYWORDS = {
    ("english", "affirmative"): ["yes", "true"],
    ("english", "negative"): ["no", "false"],
    ("tagalog", "affirmative"): ["oo", "opo", "sige", "oo nga", "tama"],
    ("tagalog", "negative"): ["hindi", "hindi po", "mali"],
    ("cebuano", "affirmative"): ["oo", "sige", "tinuod"],
    ("cebuano", "negative"): ["dili"],
}

# --- Crop keywords scanned in free text when no crop slot is filled ---
CROP_KEYWORDS = [
    (("palay", "rice"), "Palay"),
    (("mais", "corn"), "Maize"),
]

# --- Next-question templates ---
# Concepts are matched by substring against the missing field name, in order.
QUESTION_CONCEPTS = [
    ("crop", ("crop",)),
    ("hectares", ("hectare", "farm size")),
    ("province", ("province", "location")),
    ("municipality", ("municipality",)),
    ("irrigation", ("irrigation",)),
]

QUESTION_TEMPLATES = {
    "loan_officer": {
        ("english", "crop"): "What is the primary crop?",
        ("english", "hectares"): "What is the farm size in hectares?",
        ("english", "province"): "What province is the farm located in?",
        ("english", "municipality"): "What municipality is the farm in?",
        ("english", "irrigation"): "What irrigation method is used? (e.g., rainfed, pump, canal)",
    },
    "farmer": {
        ("english", "crop"): "What is your primary crop?",
        ("english", "hectares"): "What is your farm size in hectares?",
        ("english", "province"): "What province is your farm located in?",
        ("english", "municipality"): "What municipality?",
        ("english", "irrigation"): "What irrigation method do you use?",
        ("tagalog", "crop"): "Ano ang pangunahing pananim mo?",
        ("tagalog", "hectares"): "Ilang ektarya ang iyong sakahan?",
        ("tagalog", "province"): "Saan ang lokasyon ng iyong sakahan? (probinsya)",
        ("tagalog", "municipality"): "Anong munisipyo?",
        ("tagalog", "irrigation"): "Ano ang sistema ng patubig? (hal. rainfed, bomba, kanal)",
    },
}

GENERIC_QUESTION_TEMPLATE = "Please provide: {field}"
MAX_NEXT_QUESTIONS = 5

# --- Replies used when the language backend is unavailable ---
FALLBACK_REPLIES = {
    "english": "Sorry, I'm having trouble connecting right now, but I've saved what you told me.",
    "tagalog": "Paumanhin, may problema sa koneksyon ngayon, pero naitala ko na ang sinabi mo.",
    "cebuano": "Pasayloa, naa koy problema sa koneksyon karon, apan natala na nako ang imong giingon.",
}

FALLBACK_NEXT_QUESTION = {
    "english": "Next question: {prompt}",
    "tagalog": "Susunod na tanong: {prompt}",
    "cebuano": "Sunod nga pangutana: {prompt}",
}

# --- Prompt sections for the language backend ---
DIALECT_INSTRUCTIONS = {
    "english": "Respond in English.",
    "tagalog": "Sumagot sa Tagalog (Filipino).",
    "cebuano": "Sumagot sa Cebuano.",
}

WHAT_WE_KNOW_HEADER = "What we know so far:"
NEXT_QUESTION_HEADER = "Next question to ask (ask it naturally, one question at a time):"
FLOW_COMPLETE_NOTE = "All guided questions are answered. Summarize what was collected and offer next steps."

# --- Loan suggestion disclaimers ---
DISCLAIMER_BENCHMARK_BASE = "Loan amount based on industry benchmarks for your crop and farm size."
DISCLAIMER_ESTIMATED_BASE = "Loan amount is an estimate. Crop-specific data not available."
DISCLAIMER_MINIMUM_BASE = "Loan amount is a minimum estimate due to missing information."
DISCLAIMER_RISK = "Loan amount adjusted due to identified risk factors."
DISCLAIMER_MISSING_INFO = "Loan amount reduced due to incomplete information. Provide more details for a better estimate."
DISCLAIMER_MAX_CAP = "Loan amount capped at policy maximum of PHP {amount}."
DISCLAIMER_SUBJECT_TO_REVIEW = "This is a suggested loan amount. Final approval is subject to review and verification."


def lookup(table: dict, dialect: str | None, concept: str) -> str | None:
    """Looks up a (dialect, concept) entry, falling back to the default dialect."""
    value = table.get((dialect or DEFAULT_DIALECT, concept))
    if value is None:
        value = table.get((DEFAULT_DIALECT, concept))
    return value


def keywords_for(concept: str) -> list[str]:
    """All keywords for a concept across every dialect, longest first."""
    words = {word for (_, c), values in BOOLEAN_KEYWORDS.items() if c == concept for word in values}
    return sorted(words, key=len, reverse=True)
