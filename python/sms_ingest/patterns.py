"""
SMS Pattern Registry

Keyword sets and compiled regular expressions shared by the classifier and
the extractors. Everything here is built once at import time and never
mutated, so the compiled patterns are safe to share between threads.
"""

import re

from .models import PaymentMethod

# Amount token: 1,500 / 1500.50 / 2,500.25
AMOUNT = r"\d+(?:,\d+)*(?:\.\d{2})?"

# Classifier keyword sets
FINANCIAL_SENDERS = (
    # Banks
    "HDFC", "SBI", "ICICI", "AXIS", "KOTAK", "PNB", "BOB", "CANARA",
    "UNION", "INDIAN", "FEDERAL",
    # Payment apps
    "GPAY", "GOOGLEPAY", "PHONEPE", "PAYTM", "AMAZONPAY", "MOBIKWIK",
    "FREECHARGE", "PAYPAL", "BHIM", "WHATSAPP",
    # Credit cards
    "AMEX", "CITI", "HSBC", "STANCHART", "YESBANK",
    # Commerce
    "AMAZON", "FLIPKART", "ZOMATO", "SWIGGY", "UBER", "OLA",
)

TRANSACTION_KEYWORDS = (
    "paid", "debited", "sent", "transferred", "credited", "received",
    "transaction", "payment", "purchase", "spent", "withdrawn",
    "refund", "cashback", "reward", "balance", "amount",
)

CURRENCY_KEYWORDS = ("₹", "rs.", "rs ", "inr", "rupees")

PAYMENT_KEYWORDS = (
    "upi", "gpay", "phonepe", "paytm", "bhim", "whatsapp pay",
    "debit card", "credit card", "net banking", "wallet",
    "ref no", "reference", "txn", "transaction id",
)

# Tokens that must never be taken for a merchant name
MERCHANT_STOP_WORDS = (
    "ACCOUNT", "CARD", "BANK", "PAYMENT", "TRANSACTION", "TRANSFER",
    "DEBIT", "CREDIT", "BALANCE", "AMOUNT", "RUPEES", "INR", "RS",
)
MERCHANT_MIN_LENGTH = 3
MERCHANT_MAX_LENGTH = 20

TRANSACTION_ID_MIN_LENGTH = 8
TRANSACTION_ID_MAX_LENGTH = 20

# Generic amount patterns, tried in order
AMOUNT_PATTERNS = (
    re.compile(rf"₹\s*({AMOUNT})", re.IGNORECASE),
    re.compile(rf"\brs\.?\s*({AMOUNT})", re.IGNORECASE),
    re.compile(rf"\binr\s*({AMOUNT})", re.IGNORECASE),
    re.compile(rf"\brupees\s*({AMOUNT})", re.IGNORECASE),
)

_VPA = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+[a-zA-Z0-9]"

VPA_PATTERNS = (
    re.compile(rf"({_VPA})"),
    re.compile(rf"to\s+({_VPA})", re.IGNORECASE),
    re.compile(rf"paid\s+to\s+({_VPA})", re.IGNORECASE),
)

PHONE_PATTERNS = (
    re.compile(r"\b([6-9]\d{9})\b"),
    re.compile(r"to\s+(\d{10})\b", re.IGNORECASE),
    re.compile(r"paid\s+to\s+(\d{10})\b", re.IGNORECASE),
)

BARE_PHONE = re.compile(r"^\d{10}$")

# Merchant anchors are case-sensitive: the name itself must be upper case
_MERCHANT = r"([A-Z][A-Z0-9\s]{2,20})"

MERCHANT_PATTERNS = (
    re.compile(rf"at\s+{_MERCHANT}"),
    re.compile(rf"to\s+{_MERCHANT}(?=\s+on|\s+at|\s*$)"),
    re.compile(rf"paid\s+to\s+{_MERCHANT}"),
    re.compile(rf"spent\s+at\s+{_MERCHANT}"),
    re.compile(rf"purchase\s+at\s+{_MERCHANT}"),
)

_REFERENCE = r"\s*:?\s*([A-Z0-9]{8,20})\b"

TRANSACTION_ID_PATTERNS = (
    re.compile(rf"\bref{_REFERENCE}", re.IGNORECASE),
    re.compile(rf"\breference{_REFERENCE}", re.IGNORECASE),
    re.compile(rf"\btxn{_REFERENCE}", re.IGNORECASE),
    re.compile(rf"\btransaction\s+id{_REFERENCE}", re.IGNORECASE),
    re.compile(rf"\bupi\s+ref{_REFERENCE}", re.IGNORECASE),
)

# Payment method inference, checked in order against the lowercased body
PAYMENT_METHOD_RULES = (
    (("upi",), PaymentMethod.UPI),
    (("credit",), PaymentMethod.CREDIT_CARD),
    (("debit", "card"), PaymentMethod.DEBIT_CARD),
    (("net banking", "online"), PaymentMethod.NET_BANKING),
    (("wallet", "prepaid"), PaymentMethod.WALLET),
)
