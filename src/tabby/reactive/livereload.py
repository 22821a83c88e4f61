"""Live-reload bootstrap — the script baked into generated pages.

The builder injects a small script into every page it writes.  The script
connects the browser to the server's SSE endpoint and reloads the page
whenever a ``reload`` event arrives.

The injected script:
1. Opens an ``EventSource`` on ``/_livereload``
2. Reloads the page on each ``reload`` event
3. On connection loss, retries by reloading after a short delay (the
   reloaded page opens a fresh session)
"""

from __future__ import annotations

# SSE endpoint path served by ``tabby serve``
LIVERELOAD_ENDPOINT = "/_livereload"

# Name of the only event type emitted on the stream
RELOAD_EVENT = "reload"

# Injected before </body>.  Native EventSource only, no dependencies.
LIVERELOAD_SCRIPT = """\
<script data-tabby-livereload>
(function() {
  if (!window.EventSource) return;
  var src = new EventSource('/_livereload');
  src.addEventListener('reload', function() {
    src.close();
    location.reload();
  });
  src.onerror = function() {
    src.close();
    setTimeout(function() { location.reload(); }, 2000);
  };
})();
</script>
"""

_BODY_CLOSE = "</body>"


def inject_livereload(html: str, script: str = LIVERELOAD_SCRIPT) -> str:
    """Insert *script* immediately before ``</body>``, or append it."""
    if _BODY_CLOSE in html:
        return html.replace(_BODY_CLOSE, script + _BODY_CLOSE, 1)
    return html + script
