"""
Prompt construction for LLM translation providers.

Prompts pair a translator persona (system) with the text to translate
(user). Chunked translations add read-only context from the neighbouring
chunks.
"""

from typing import Optional, Tuple

from videospeak.core.models import find_language

INDIAN_LANGUAGE_CODES = (
    "hi", "bn", "te", "ta", "mr", "gu", "kn", "ml", "pa", "or", "od",
    "as", "mai", "sat", "ks", "sd", "ur", "sa", "ne", "brx", "doi",
    "kok", "mni",
)


def language_name(code_or_name: str) -> str:
    """Human-readable name for a language code; unknown values pass through."""
    if not code_or_name or code_or_name == "auto":
        return "the source language"
    language = find_language(code_or_name)
    return language.name if language else code_or_name


def is_indian_language(language: str) -> bool:
    if language.endswith("-IN"):
        return True
    return any(language == code or language.startswith(code + "-") for code in INDIAN_LANGUAGE_CODES)


def create_system_prompt(
    source_language: str,
    target_language: str,
    domain_context: Optional[str] = None
) -> str:
    source = language_name(source_language)
    target = language_name(target_language)

    prompt = (
        f"You are a professional translator with expertise in {source} and {target}.\n"
        f"Your task is to translate the following text from {source} to {target}.\n"
        "Maintain the original meaning, tone, and context. Preserve technical terminology, "
        "cultural references, and idiomatic expressions appropriately. "
        f"The translation should sound natural to native {target} speakers."
    )

    if domain_context:
        prompt += (
            f"\n\nThis text is from the {domain_context} field and may contain specialized terminology. "
            f"Translate technical terms using the standard {target} terminology for this domain."
        )

    if is_indian_language(target_language):
        prompt += (
            "\n\nFor this Indian language translation, pay special attention to:\n"
            "1. Cultural nuances specific to Indian contexts\n"
            "2. Honorifics and formal/informal speech distinctions\n"
            "3. Transliteration of names and places\n"
            "4. Regional variations in terminology"
        )

    return prompt


def create_user_prompt(text: str, target_language: str, preserve_formatting: bool = True) -> str:
    prompt = f"Translate the following text to {language_name(target_language)}:"
    if preserve_formatting:
        prompt += "\nPreserve the original formatting, including paragraphs, bullet points, and line breaks."
    prompt += f"\n\n{text}"
    prompt += "\n\nProvide only the translated text without explanations or notes."
    return prompt


def create_chunk_context_prompt(
    chunk: str,
    target_language: str,
    previous_context: Optional[str] = None,
    following_context: Optional[str] = None
) -> str:
    """User prompt for one chunk of a long text, with neighbours as reference."""
    prompt = f"Translate the following text to {language_name(target_language)}:"

    if previous_context:
        prompt += f"\n\nPrevious context (already translated, for reference only):\n{previous_context}"

    prompt += f"\n\nTranslate this text:\n{chunk}"

    if following_context:
        prompt += f"\n\nFollowing context (for reference only):\n{following_context}"

    prompt += (
        "\n\nKeep your translation consistent with the previous context if provided. "
        "Provide only the translation of the specified text without translating the context sections."
    )
    return prompt


def build_prompts(
    text: str,
    target_language: str,
    source_language: str,
    system_prompt: Optional[str] = None,
    user_prompt: Optional[str] = None,
    context_prompt: Optional[str] = None,
    domain_hint: Optional[str] = None
) -> Tuple[str, str]:
    """Resolve the (system, user) pair, honouring explicit overrides."""
    system = system_prompt or create_system_prompt(source_language, target_language, domain_hint)
    user = user_prompt or context_prompt or create_user_prompt(text, target_language)
    return system, user
