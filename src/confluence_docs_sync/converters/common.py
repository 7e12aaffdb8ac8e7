"""Common helpers for markdown to storage-format conversion."""

# =============================================================================
# Code Block Language Mapping
# =============================================================================
#
# Markdown code fence language identifier -> Confluence code macro language.
#
# Markdown:   ```sh
# Confluence: <ac:parameter ac:name="language">bash</ac:parameter>
#
# Unknown languages pass through unchanged.
# =============================================================================

_MARKDOWN_TO_CONFLUENCE_MAP: dict[str, str] = {
    # Shell scripting
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "console": "bash",
    # JavaScript / TypeScript variants
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    # Python
    "py": "python",
    "python3": "python",
    # C family
    "c++": "cpp",
    "cs": "csharp",
    "c#": "csharp",
    # Markup and data
    "yml": "yaml",
    "htm": "html",
    "md": "markdown",
    # Text/plaintext normalization
    "plaintext": "text",
    "plain": "text",
    "txt": "text",
}


def markdown_to_confluence_lang(lang: str) -> str:
    """
    Convert a Markdown code fence language to a Confluence code macro language.

    Args:
        lang: Markdown language identifier (e.g., 'sh', 'python', 'js')

    Returns:
        Confluence language name. Returns input unchanged if no mapping exists.

    Examples:
        >>> markdown_to_confluence_lang("sh")
        'bash'
        >>> markdown_to_confluence_lang("python")
        'python'
        >>> markdown_to_confluence_lang("unknown")
        'unknown'
    """
    return _MARKDOWN_TO_CONFLUENCE_MAP.get(lang.lower(), lang)


def escape_cdata(text: str) -> str:
    """Split every ``]]>`` so ``text`` stays inside a single CDATA section."""
    return text.replace("]]>", "]]]]><![CDATA[>")
