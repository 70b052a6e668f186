"""FileIndex - fast file name search over local drives."""

__version__ = "0.1.0"
