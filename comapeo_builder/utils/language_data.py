"""
Static language table used to recognise translation sheet headers.

Mirrors the languages list shipped with the CoMapeo mobile app.
Order matters: when two entries normalise to the same name, the one listed
first wins.
"""

from __future__ import annotations

from typing import Dict, Tuple

LANGUAGES: Tuple[Tuple[str, str, str], ...] = (
    ("en", "English", "English"),
    ("es", "Spanish", "Español"),
    ("pt", "Portuguese", "Português"),
    ("fr", "French", "Français"),
    ("de", "German", "Deutsch"),
    ("it", "Italian", "Italiano"),
    ("ja", "Japanese", "日本語"),
    ("ko", "Korean", "한국어"),
    ("zh-CN", "Chinese Simplified", "简体中文"),
    ("zh-TW", "Chinese Traditional", "繁體中文"),
    ("ru", "Russian", "Русский"),
    ("ar", "Arabic", "العربية"),
    ("hi", "Hindi", "हिन्दी"),
    ("th", "Thai", "ไทย"),
    ("vi", "Vietnamese", "Tiếng Việt"),
    ("tr", "Turkish", "Türkçe"),
    ("pl", "Polish", "Polski"),
    ("nl", "Dutch", "Nederlands"),
    ("sv", "Swedish", "Svenska"),
    ("no", "Norwegian", "Norsk"),
    ("da", "Danish", "Dansk"),
    ("fi", "Finnish", "Suomi"),
    ("hu", "Hungarian", "Magyar"),
    ("cs", "Czech", "Čeština"),
    ("sk", "Slovak", "Slovenčina"),
    ("ro", "Romanian", "Română"),
    ("bg", "Bulgarian", "Български"),
    ("hr", "Croatian", "Hrvatski"),
    ("sr", "Serbian", "Српски"),
    ("sl", "Slovenian", "Slovenščina"),
    ("et", "Estonian", "Eesti"),
    ("lv", "Latvian", "Latviešu"),
    ("lt", "Lithuanian", "Lietuvių"),
    ("el", "Greek", "Ελληνικά"),
    ("he", "Hebrew", "עברית"),
    ("fa", "Persian", "فارسی"),
    ("ur", "Urdu", "اردو"),
    ("bn", "Bengali", "বাংলা"),
    ("ta", "Tamil", "தமிழ்"),
    ("te", "Telugu", "తెలుగు"),
    ("kn", "Kannada", "ಕನ್ನಡ"),
    ("ml", "Malayalam", "മലയാളം"),
    ("gu", "Gujarati", "ગુજરાતી"),
    ("mr", "Marathi", "मराठी"),
    ("pa", "Punjabi", "ਪੰਜਾਬੀ"),
    ("ne", "Nepali", "नेपाली"),
    ("si", "Sinhala", "සිංහල"),
    ("my", "Myanmar", "မြန်မာ"),
    ("km", "Khmer", "ខ្មែរ"),
    ("lo", "Lao", "ລາວ"),
    ("ka", "Georgian", "ქართული"),
    ("am", "Amharic", "አማርኛ"),
    ("sw", "Swahili", "Kiswahili"),
    ("zu", "Zulu", "isiZulu"),
    ("af", "Afrikaans", "Afrikaans"),
    ("is", "Icelandic", "Íslenska"),
    ("mt", "Maltese", "Malti"),
    ("cy", "Welsh", "Cymraeg"),
    ("ga", "Irish", "Gaeilge"),
    ("eu", "Basque", "Euskara"),
    ("ca", "Catalan", "Català"),
    ("gl", "Galician", "Galego"),
    ("ast", "Asturian", "Asturianu"),
    ("br", "Breton", "Brezhoneg"),
    ("co", "Corsican", "Corsu"),
    ("eo", "Esperanto", "Esperanto"),
    ("la", "Latin", "Latina"),
    ("jv", "Javanese", "Basa Jawa"),
    ("su", "Sundanese", "Basa Sunda"),
    ("tl", "Filipino", "Filipino"),
    ("ceb", "Cebuano", "Cebuano"),
    ("haw", "Hawaiian", "ʻŌlelo Hawaiʻi"),
    ("mg", "Malagasy", "Malagasy"),
    ("sm", "Samoan", "Gagana Samoa"),
    ("to", "Tongan", "Lea Faka-Tonga"),
    ("fj", "Fijian", "Na Vosa Vakaviti"),
    ("mi", "Maori", "Te Reo Māori"),
    ("sn", "Shona", "chiShona"),
    ("st", "Sotho", "Sesotho"),
    ("xh", "Xhosa", "isiXhosa"),
    ("yo", "Yoruba", "Yorùbá"),
    ("ig", "Igbo", "Igbo"),
    ("ha", "Hausa", "Hausa"),
    ("rw", "Kinyarwanda", "Ikinyarwanda"),
    ("ny", "Chichewa", "Chichewa"),
    ("so", "Somali", "Soomaali"),
    ("ti", "Tigrinya", "ትግርኛ"),
    ("om", "Oromo", "Oromoo"),
    ("ak", "Akan", "Akan"),
    ("ee", "Ewe", "Eʋegbe"),
    ("tw", "Twi", "Twi"),
    ("lg", "Luganda", "Luganda"),
    ("ln", "Lingala", "Lingála"),
    ("kg", "Kongo", "Kikongo"),
    ("rn", "Rundi", "Ikirundi"),
    ("wo", "Wolof", "Wolof"),
    ("ff", "Fulah", "Fulfulde"),
    ("bm", "Bambara", "Bamanankan"),
    ("dyu", "Dyula", "Dyula"),
    ("kri", "Krio", "Krio"),
    ("luo", "Luo", "Dholuo"),
    ("gom", "Goan Konkani", "गोंयची कोंकणी"),
    ("sa", "Sanskrit", "संस्कृतम्"),
    ("pi", "Pali", "पालि"),
    ("bo", "Tibetan", "བོད་ཡིག"),
    ("dz", "Dzongkha", "རྫོང་ཁ"),
    ("ug", "Uyghur", "ئۇيغۇرچە"),
    ("kk", "Kazakh", "Қазақша"),
    ("ky", "Kyrgyz", "Кыргызча"),
    ("uz", "Uzbek", "Oʻzbekcha"),
    ("tk", "Turkmen", "Türkmençe"),
    ("tg", "Tajik", "Тоҷикӣ"),
    ("mn", "Mongolian", "Монгол"),
    ("ii", "Sichuan Yi", "ꆈꌠꉙ"),
    ("iu", "Inuktitut", "ᐃᓄᒃᑎᑐᑦ"),
    ("ik", "Inupiaq", "Iñupiatun"),
    ("chr", "Cherokee", "ᏣᎳᎩ"),
    ("chy", "Cheyenne", "Tsėhesenėstsestȯtse"),
    ("dak", "Dakota", "Dakȟótiyapi"),
    ("lkt", "Lakota", "Lakȟótiyapi"),
    ("nv", "Navajo", "Diné Bizaad"),
    ("qu", "Quechua", "Runa Simi"),
    ("gn", "Guarani", "Avañe'ẽ"),
    ("ay", "Aymara", "Aymar Aru"),
)

# Spellings people type without accents; registered after the table so real
# names always take precedence.
ACCENT_FREE_ALIASES: Dict[str, str] = {
    "Espanol": "es",
    "Portugues": "pt",
    "Francais": "fr",
    "Turkce": "tr",
    "Chinese": "zh-CN",
    "Tagalog": "tl",
}
