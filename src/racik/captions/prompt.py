"""Prompt construction for caption requests."""

from racik.captions.models import ANY_TARGET, CaptionRequest

GENERIC_PLATFORM = "Media Sosial"
GENZ_CLAUSE = "dengan gaya bahasa Generasi Z"
GALAU_CLAUSE = "dalam kondisi hati yang galau"


def platform_label(target: str) -> str:
    """Platform name used in the prompt; 'Apa Aja' and blanks mean any."""
    target = target.strip()
    if not target or target == ANY_TARGET:
        return GENERIC_PLATFORM
    return target


def build_prompt(request: CaptionRequest) -> str:
    """Build the completion prompt for a caption request.

    The prompt is, in order: the platform clause, the Gen-Z clause when
    ``genz`` is set, the melancholic clause when ``galau`` is set, and the
    caption text verbatim. Same request, same prompt.

    Example:
        >>> build_prompt(CaptionRequest(caption="Halo", target="TikTok"))
        'Buat caption untuk TikTok menggunakan bahasa Indonesia dari kalimat:\\n\\nHalo'
    """
    clauses = [
        f"Buat caption untuk {platform_label(request.target)} menggunakan bahasa Indonesia"
    ]
    if request.genz:
        clauses.append(GENZ_CLAUSE)
    if request.galau:
        clauses.append(GALAU_CLAUSE)

    return f"{' '.join(clauses)} dari kalimat:\n\n{request.caption}"


def normalize_caption(text: str) -> str:
    """Upper-case the first character and lower-case the rest."""
    if not text:
        return text
    return text[0].upper() + text[1:].lower()
