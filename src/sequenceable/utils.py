from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def pad_start(text: str, length: int, chars: str) -> str:
    """Left-pad text to length, repeating chars and truncating the fill as needed."""
    missing = length - len(text)
    if missing <= 0 or not chars:
        return text
    repeats = missing // len(chars) + 1
    return (chars * repeats)[:missing] + text
