"""
Helpers for writing video titles and status text into log lines.
"""

from typing import Optional


def safe_log_text(text: Optional[str], max_length: Optional[int] = 120) -> Optional[str]:
    """
    Make arbitrary title text safe for a single log line.
    
    Titles often carry emoji or non-Latin scripts that some consoles cannot
    encode, and occasionally embedded newlines that would split a log record.
    
    Args:
        text: Text to sanitize, may be None
        max_length: Truncate to this many characters (None keeps everything)
        
    Returns:
        ASCII-only single-line text, or the input unchanged when it is empty
    """
    if not text:
        return text
    
    flattened = " ".join(text.split())
    if max_length is not None and len(flattened) > max_length:
        flattened = flattened[:max_length - 3] + "..."
    return flattened.encode('ascii', 'replace').decode('ascii')
