"""XCStrings Translator - AI-assisted batch translation of .xcstrings strings."""

__version__ = "0.1.0"
