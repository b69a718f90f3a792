"""
Known natural languages and their filename abbreviations.
"""
from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Language:
    """A natural language, identified by the abbreviation used in filenames."""
    name: str
    abbreviation: str

    def __post_init__(self):
        """Validate required fields after initialization."""
        if not self.name:
            raise ValueError("Language name cannot be empty")

        if not self.abbreviation:
            raise ValueError("Language abbreviation cannot be empty")

    def __str__(self) -> str:
        return self.abbreviation

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "Language":
        """
        Look up a known language by its abbreviation.

        Raises:
            ValueError: If the abbreviation is not a known language
        """
        key = str(abbreviation).strip().lower()
        if key not in LANGUAGES_BY_ABBREVIATION:
            raise ValueError(f"Unknown language abbreviation: '{abbreviation}'")
        return LANGUAGES_BY_ABBREVIATION[key]


ALBANIAN = Language("Albanian", "sq")
ARABIC = Language("Arabic", "ar")
ARMENIAN = Language("Armenian", "hy")
AZERBAIJANI = Language("Azerbaijani", "az")
BASQUE = Language("Basque", "eu")
BELARUSIAN = Language("Belarusian", "be")
BENGALI = Language("Bengali", "bn")
BOSNIAN = Language("Bosnian", "bs")
BULGARIAN = Language("Bulgarian", "bg")
BURMESE = Language("Burmese", "my")
CHINESE = Language("Chinese", "zh")
CHINESE_MAINLAND = Language("Chinese (Mainland)", "zh-cn")
CHINESE_TAIWAN = Language("Chinese (Taiwan)", "zh-tw")
CROATIAN = Language("Croatian", "hr")
CZECH = Language("Czech", "cs")
DANISH = Language("Danish", "da")
DUTCH = Language("Dutch", "nl")
ENGLISH = Language("English", "en")
ESPERANTO = Language("Esperanto", "eo")
ESTONIAN = Language("Estonian", "et")
FINNISH = Language("Finnish", "fi")
FRENCH = Language("French", "fr")
FRENCH_CANADA = Language("French (Canada)", "fr-ca")
GALICIAN = Language("Galician", "gl")
GEORGIAN = Language("Georgian", "ka")
GERMAN = Language("German", "de")
GREEK = Language("Greek", "el")
HEBREW = Language("Hebrew", "he")
HINDI = Language("Hindi", "hi")
HUNGARIAN = Language("Hungarian", "hu")
INDONESIAN = Language("Indonesian", "id")
ITALIAN = Language("Italian", "it")
JAPANESE = Language("Japanese", "ja")
KAZAKH = Language("Kazakh", "kk")
KOREAN = Language("Korean", "ko")
KURDISH = Language("Kurdish", "ku")
LITHUANIAN = Language("Lithuanian", "lt")
MACEDONIAN = Language("Macedonian", "mk")
MALAY = Language("Malay", "ms")
MARATHI = Language("Marathi", "mr")
MONGOLIAN = Language("Mongolian", "mn")
NORWEGIAN = Language("Norwegian", "nb")
PERSIAN = Language("Persian", "fa")
POLISH = Language("Polish", "pl")
PORTUGUESE = Language("Portuguese", "pt")
PORTUGUESE_BRAZIL = Language("Portuguese (Brazil)", "pt-br")
ROMANIAN = Language("Romanian", "ro")
RUSSIAN = Language("Russian", "ru")
SERBIAN = Language("Serbian", "sr")
SLOVAK = Language("Slovak", "sk")
SLOVENIAN = Language("Slovenian", "sl")
SPANISH = Language("Spanish", "es")
SWEDISH = Language("Swedish", "sv")
TAMIL = Language("Tamil", "ta")
THAI = Language("Thai", "th")
TURKISH = Language("Turkish", "tr")
UKRAINIAN = Language("Ukrainian", "uk")
URDU = Language("Urdu", "ur")
VIETNAMESE = Language("Vietnamese", "vi")

ALL_LANGUAGES: List[Language] = [
    ALBANIAN, ARABIC, ARMENIAN, AZERBAIJANI, BASQUE, BELARUSIAN, BENGALI, BOSNIAN, BULGARIAN, BURMESE,
    CHINESE, CHINESE_MAINLAND, CHINESE_TAIWAN, CROATIAN, CZECH, DANISH, DUTCH, ENGLISH, ESPERANTO,
    ESTONIAN, FINNISH, FRENCH, FRENCH_CANADA, GALICIAN, GEORGIAN, GERMAN, GREEK, HEBREW, HINDI,
    HUNGARIAN, INDONESIAN, ITALIAN, JAPANESE, KAZAKH, KOREAN, KURDISH, LITHUANIAN, MACEDONIAN, MALAY,
    MARATHI, MONGOLIAN, NORWEGIAN, PERSIAN, POLISH, PORTUGUESE, PORTUGUESE_BRAZIL, ROMANIAN, RUSSIAN,
    TAMIL, THAI, SERBIAN, SLOVAK, SLOVENIAN, SWEDISH, SPANISH, TURKISH, UKRAINIAN, URDU, VIETNAMESE,
]

LANGUAGES_BY_ABBREVIATION: Dict[str, Language] = {
    language.abbreviation: language for language in ALL_LANGUAGES
}
