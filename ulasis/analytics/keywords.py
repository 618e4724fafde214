"""Keyword lists behind the sentiment heuristic and the topic rules.

Indonesian words come first since most reviews are written in Indonesian,
English ones are appended so mixed-language comments still score.
"""

POSITIVE_WORDS_ID = ["mantap", "juara", "perfect", "recommended", "senang", "bahagia", "enak", "puas"]
NEGATIVE_WORDS_ID = ["kecewa", "marah", "buruk", "parah", "jelek", "lambat", "mahal", "mengecewakan"]
NEUTRAL_WORDS_ID = ["biasa", "cukup", "lumayan", "standar", "normal"]

POSITIVE_WORDS_EN = ["good", "great", "excellent", "amazing", "wonderful", "fantastic", "love", "perfect", "best", "awesome"]
NEGATIVE_WORDS_EN = ["bad", "terrible", "awful", "horrible", "hate", "worst", "disappointing", "poor", "unacceptable"]

POSITIVE_WORDS = POSITIVE_WORDS_ID + [w for w in POSITIVE_WORDS_EN if w not in POSITIVE_WORDS_ID]
NEGATIVE_WORDS = NEGATIVE_WORDS_ID + NEGATIVE_WORDS_EN

# topic -> trigger words, matched on whole tokens
TOPIC_KEYWORDS: dict[str, list[str]] = {
    "Pelayanan": ["pelayanan", "staff", "kasir", "barista", "ramah", "cepat", "service", "pelayan"],
    "Kualitas Produk": ["enak", "mantap", "juara", "kualitas", "rasa", "variasi", "kopi", "makanan", "menu"],
    "Fasilitas": ["toilet", "ac", "parkir", "wifi", "fasilitas", "colokan"],
    "Harga": ["harga", "mahal", "murah", "promo", "diskon", "value"],
    "Kebersihan": ["bersih", "kotor", "jorok", "higienis", "kebersihan"],
    "Suasana": ["suasana", "nyaman", "cozy", "berisik", "musik", "tempat"],
}

TOPIC_DESCRIPTIONS = {
    "Pelayanan": "Staff friendliness and speed of service",
    "Kualitas Produk": "Taste, quality and variety of products",
    "Fasilitas": "Toilets, air conditioning, parking, wifi",
    "Harga": "Prices, promotions and value for money",
    "Kebersihan": "Cleanliness of the venue",
    "Suasana": "Ambience and comfort of the place",
}
