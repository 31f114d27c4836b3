from typing import Dict, List


# Canonical day keys in calendar (Monday-first) order
DAY_ORDER: List[str] = [
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
]

# Staff scheduling convention: the day number is the index in this list (Sunday=0)
STAFF_DAY_KEYS: List[str] = [
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
]

# Company hours convention: explicit map, independent of STAFF_DAY_KEYS
COMPANY_HOURS_DAY_MAP: Dict[str, int] = {
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
    "sunday": 0,
}

DAY_LABELS: Dict[str, str] = {
    "monday": "Maandag",
    "tuesday": "Dinsdag",
    "wednesday": "Woensdag",
    "thursday": "Donderdag",
    "friday": "Vrijdag",
    "saturday": "Zaterdag",
    "sunday": "Zondag",
}

# Availability defaults
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"
WEEKEND_TEMPLATE_START = "10:00"
WEEKEND_TEMPLATE_END = "16:00"
WEEKDAY_TEMPLATE_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]
WEEKEND_TEMPLATE_DAYS = ["saturday", "sunday"]

# Appointment form defaults
DEFAULT_APPOINTMENT_DURATION = 30
FALLBACK_CATEGORY_NAME = "Overig"

# Voice agent defaults seeded after company setup
DEFAULT_VOICE_ID = "Melanie"
DEFAULT_WELCOME_PHRASE = "Goeiedag, hoe kan ik u helpen?"
DEFAULT_TALKING_SPEED = 1


class ReplyStyle:
    PROFESSIONAL = "Professional"
    CASUAL = "Casual"
    EMPATHETIC = "Empathetic"
    HUMOROUS = "Humorous"


REPLY_STYLE_DESCRIPTIONS: Dict[str, str] = {
    ReplyStyle.PROFESSIONAL: "Polished, respectful, business-like. Avoid slang; use complete sentences.",
    ReplyStyle.CASUAL: "Friendly, relaxed, conversational. Feel free to use contractions.",
    ReplyStyle.EMPATHETIC: "Warm, understanding, validating feelings.",
    ReplyStyle.HUMOROUS: "Lighthearted, playful, maybe include a joke or pun.",
}

DEFAULT_VOICE_SETTINGS = {
    "welcomePhrase": DEFAULT_WELCOME_PHRASE,
    "talkingSpeed": DEFAULT_TALKING_SPEED,
    "voiceId": DEFAULT_VOICE_ID,
}

DEFAULT_REPLY_STYLE = {
    "name": ReplyStyle.PROFESSIONAL,
    "description": REPLY_STYLE_DESCRIPTIONS[ReplyStyle.PROFESSIONAL],
}

# Company setup issues
SETUP_FIELD_COMPANY_NAME = "companyName"
SETUP_FIELD_CONTACT_EMAIL = "contactEmail"
SETUP_FIELD_PHONE_NUMBER = "phoneNumber"
SETUP_FIELD_ADDRESS = "address"
SETUP_FIELD_BUSINESS_HOURS = "businessHours"
SETUP_ISSUE_AUTH = "auth"
SETUP_ISSUE_NETWORK = "network"
SETUP_ISSUE_UNKNOWN = "unknown"

PHONE_NUMBER_LIMIT = 50
