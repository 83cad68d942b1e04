"""Human-readable duration strings."""


def format_duration(seconds: int) -> str:
    """Format seconds as e.g. '1h 5m', '45m', '30s'."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    if minutes:
        return f"{minutes}m"
    return f"{secs}s"
