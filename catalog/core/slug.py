import re
import unicodedata


def slugify(name: str) -> str:
    """
    Generate a URL-safe slug from a display name.

    Transliterates to ASCII, lowercases, drops everything except word
    characters, whitespace and hyphens, turns whitespace runs into single
    hyphens and trims hyphens from both ends.

    Args:
        name: Display name to convert

    Returns:
        Slug string, empty if nothing usable remains

    Example:
        >>> slugify("Men's Wear!!")
        'mens-wear'
    """
    # First, normalize unicode characters
    slug = unicodedata.normalize("NFKD", name or "")
    slug = slug.encode("ascii", "ignore").decode("ascii")

    # Convert to lowercase
    slug = slug.lower()

    # Remove invalid characters
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)

    # Replace whitespace with hyphens and collapse repeats
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-{2,}", "-", slug)

    return slug.strip("-")
