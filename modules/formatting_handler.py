# modules/formatting_handler.py

DISCORD_FIELD_LIMIT = 1024


def truncate(text, max_length=100, suffix="..."):
    """
    Truncates a string to max_length characters, suffix included.

    Args:
        text: Input text
        max_length: Maximum length of the result
        suffix: Suffix appended when the text was cut
    """
    if text is None:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max(0, max_length - len(suffix))] + suffix


def format_field_value(text, empty_label="(empty)"):
    """Prepares text for an embed field: code-formatted, never blank, within Discord's limit."""
    if not text:
        return empty_label
    return f"`{truncate(text, DISCORD_FIELD_LIMIT - 2)}`"


def format_duration(ms):
    """
    Formats an elapsed time in milliseconds for display.

    Examples:
        850 -> "850 ms", 2500 -> "2.50 s", 65000 -> "1 min 5.0 s", 3723000 -> "1 h 2 min 3 s"
    """
    if ms < 1000:
        return f"{int(ms)} ms"

    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.2f} s"

    minutes = int(seconds // 60)
    remaining_seconds = seconds - minutes * 60

    if minutes >= 60:
        hours = minutes // 60
        remaining_minutes = minutes - hours * 60
        return f"{hours} h {remaining_minutes} min {remaining_seconds:.0f} s"

    return f"{minutes} min {remaining_seconds:.1f} s"
