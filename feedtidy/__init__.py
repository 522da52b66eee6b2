"""feedtidy - poll RSS/Atom feeds and tidy article HTML for display.

Cleaning a fragment::

    from feedtidy import clean

    clean('<div class="x"><script>x()</script><p>Hi <a href="/a">there</a></p></div>')
    # '<p>Hi <a href="/a" target="_blank" rel="noopener noreferrer">there</a></p>'

Custom tables per call::

    from feedtidy import DEFAULT_CONFIG, clean

    config = DEFAULT_CONFIG.without(elements=["img"])
    clean(html, config)

Polling and rewriting (see ``python -m feedtidy --help``)::

    from feedtidy.pipeline import run_once
    from feedtidy.settings import get_settings
    from feedtidy.store import FeedStore

    settings = get_settings()
    report = run_once(FeedStore(settings.data_dir), settings)
"""

from feedtidy.fetch import FetchError
from feedtidy.sanitizer import DEFAULT_CONFIG, ParseFailure, SanitizerConfig, clean

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_CONFIG",
    "FetchError",
    "ParseFailure",
    "SanitizerConfig",
    "clean",
]
