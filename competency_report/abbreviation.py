import re

_DELIMITERS = re.compile(r'[ /]+')


def get_abbreviation(name: str) -> str:
    """
    Build an initials-based short code from a competency or topic name.

    "Effective Communication" -> "EC"
    "Stress/Handling Capacity" -> "SHC"
    """
    if not name:
        return ''
    tokens = [t for t in _DELIMITERS.split(str(name)) if t]
    return ''.join(token[0].upper() for token in tokens)
