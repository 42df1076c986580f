"""
Sandbox document for the live component preview.

Generated component code is rewritten into a freestanding script (no module
syntax) and embedded in a standalone HTML page that preloads React, ReactDOM,
Babel standalone and Tailwind from CDNs. The page mounts the entry component
and reports the outcome to its host with exactly one ``postMessage``:
``{type: "preview-loaded"}`` or ``{type: "preview-error", message}``.

The page is meant to run inside ``<iframe sandbox="allow-scripts">`` (or be
served with the equivalent CSP ``sandbox`` directive): scripts run, but the
frame gets an opaque origin, cannot reach the host's DOM or storage, and its
own CSP blocks network access beyond the preloaded libraries.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_ENTRY = "App"
# Name bound to a wrapped default export when the module already declares App.
WRAPPED_ENTRY = "__ForgeEntry"
BOUNDARY = "__ForgeBoundary"

SANDBOX_FLAGS = "allow-scripts"

CONTENT_SECURITY_POLICY = (
    "default-src 'none'; "
    "script-src 'unsafe-inline' 'unsafe-eval' https://unpkg.com https://cdn.tailwindcss.com; "
    "style-src 'unsafe-inline'; "
    "img-src data: blob:; "
    "font-src data:; "
    "connect-src 'none'"
)

MISSING_ENTRY_MESSAGE = "No {entry} component found. Make sure your code defines an {entry} function."

_DEFAULT_FUNCTION = re.compile(r"export\s+default\s+((?:async\s+)?function\s+(\w+))")
_DEFAULT_CLASS = re.compile(r"export\s+default\s+(class\s+(\w+))")
_DEFAULT_ANONYMOUS_FUNCTION = re.compile(r"export\s+default\s+function\s*\(")
_DEFAULT_IDENTIFIER = re.compile(r"export\s+default\s+(\w+)\s*;?")
_DEFAULT_EXPRESSION = re.compile(r"export\s+default\s+")
_NAMED_EXPORT = re.compile(r"export\s+(function|const|let|var|class|async\s+function)\s+")
_EXPORT_LIST = re.compile(r"^\s*export\s*\{[^}]*\}\s*;?[ \t]*$", re.M)
_IMPORT_FROM = re.compile(r"^\s*import\b[^;'\"]*?\bfrom\s*['\"][^'\"\n]+['\"]\s*;?", re.M)
_IMPORT_BARE = re.compile(r"^\s*import\s*['\"][^'\"\n]+['\"]\s*;?", re.M)


@dataclass(frozen=True)
class RewrittenCode:
    script: str
    entry: str
    entry_found: bool


def _declares(script: str, name: str) -> bool:
    pattern = re.compile(
        rf"(?:\bfunction\s+{name}\b|\bclass\s+{name}\b|\b(?:const|let|var)\s+{name}\s*=)"
    )
    return bool(pattern.search(script))


def rewrite_module(code: str) -> RewrittenCode:
    """Strip import/export syntax so the code runs as a plain script."""
    script = code
    entry: Optional[str] = None

    match = _DEFAULT_FUNCTION.search(script) or _DEFAULT_CLASS.search(script)
    if match:
        entry = match.group(2)
    script = _DEFAULT_FUNCTION.sub(r"\1", script)
    script = _DEFAULT_CLASS.sub(r"\1", script)
    if entry is None and _DEFAULT_ANONYMOUS_FUNCTION.search(script):
        entry = DEFAULT_ENTRY
        script = _DEFAULT_ANONYMOUS_FUNCTION.sub(f"function {DEFAULT_ENTRY}(", script, count=1)

    if entry is None:
        match = _DEFAULT_IDENTIFIER.search(script)
        if match and _declares(script, match.group(1)):
            entry = match.group(1)
            script = _DEFAULT_IDENTIFIER.sub("", script, count=1)
        elif _DEFAULT_EXPRESSION.search(script):
            entry = WRAPPED_ENTRY if _declares(script, DEFAULT_ENTRY) else DEFAULT_ENTRY
            script = _DEFAULT_EXPRESSION.sub(f"const {entry} = ", script, count=1)
    else:
        script = _DEFAULT_IDENTIFIER.sub("", script)

    script = _NAMED_EXPORT.sub(r"\1 ", script)
    script = _EXPORT_LIST.sub("", script)
    script = _IMPORT_FROM.sub("// import removed", script)
    script = _IMPORT_BARE.sub("// import removed", script)

    entry = entry or DEFAULT_ENTRY
    return RewrittenCode(script=script, entry=entry, entry_found=_declares(script, entry))


def _escape_script(script: str) -> str:
    return re.sub(r"</(script)", r"<\\/\1", script, flags=re.I)


def build_document(rewritten: RewrittenCode, title: str = "Preview") -> str:
    """Render the standalone sandbox page for a rewritten component."""
    entry = rewritten.entry
    missing = MISSING_ENTRY_MESSAGE.format(entry=entry)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <meta http-equiv="Content-Security-Policy" content="{CONTENT_SECURITY_POLICY}">
  <title>{html.escape(title)}</title>
  <script>
    window.tailwind = {{
      config: {{
        theme: {{
          extend: {{
            colors: {{
              copper: '#c9956c',
              'copper-muted': 'rgba(201, 149, 108, 0.15)',
            }}
          }}
        }}
      }}
    }};
    (function () {{
      var reported = false;
      window.__forgeReport = function (message) {{
        if (reported) return;
        reported = true;
        window.parent.postMessage(message, '*');
      }};
      // Draws the inline error block unless an outcome was already reported.
      window.__forgeFail = function (message) {{
        if (reported) return;
        var root = document.getElementById('root');
        if (root) {{
          var block = document.createElement('div');
          block.className = 'error-container';
          block.textContent = 'Error: ' + message;
          root.replaceChildren(block);
        }}
        window.__forgeReport({{ type: 'preview-error', message: message }});
      }};
      window.addEventListener('error', function (event) {{
        window.__forgeFail(String(event.message || 'Script error'));
      }});
    }})();
  </script>
  <script src="https://cdn.tailwindcss.com"></script>
  <script crossorigin src="https://unpkg.com/react@18/umd/react.production.min.js"></script>
  <script crossorigin src="https://unpkg.com/react-dom@18/umd/react-dom.production.min.js"></script>
  <script src="https://unpkg.com/@babel/standalone/babel.min.js"></script>
  <style>
    * {{ box-sizing: border-box; }}
    body {{
      margin: 0;
      padding: 0;
      font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      min-height: 100vh;
      background: white;
    }}
    #root {{ min-height: 100vh; }}
    .error-container {{
      padding: 20px;
      background: #fef2f2;
      color: #dc2626;
      border-radius: 8px;
      font-family: monospace;
      font-size: 13px;
      white-space: pre-wrap;
      margin: 20px;
    }}
  </style>
</head>
<body>
  <div id="root"></div>
  <script type="text/babel" data-presets="react">
    const {{ useState, useEffect, useRef, useMemo, useCallback, useReducer, useContext, createContext, Fragment }} = React;

    class {BOUNDARY} extends React.Component {{
      constructor(props) {{
        super(props);
        this.state = {{ error: null }};
      }}

      static getDerivedStateFromError(error) {{
        return {{ error: error && error.message ? error.message : String(error) }};
      }}

      componentDidMount() {{
        if (this.state.error === null) {{
          window.__forgeReport({{ type: 'preview-loaded' }});
        }}
      }}

      componentDidCatch(error) {{
        const message = error && error.message ? error.message : String(error);
        window.__forgeReport({{ type: 'preview-error', message: message }});
      }}

      render() {{
        if (this.state.error !== null) {{
          return <div className="error-container">{{'Error: ' + this.state.error}}</div>;
        }}
        return this.props.children;
      }}
    }}

    try {{
      {_escape_script(rewritten.script)}

      if (typeof {entry} !== 'undefined') {{
        const root = ReactDOM.createRoot(document.getElementById('root'));
        root.render(<{BOUNDARY}><{entry} /></{BOUNDARY}>);
      }} else {{
        window.__forgeFail({missing!r});
      }}
    }} catch (error) {{
      window.__forgeFail(error && error.message ? error.message : String(error));
    }}
  </script>
</body>
</html>"""


def host_frame(document: str, title: str = "Component Preview") -> str:
    """Markup for embedding the sandbox page in a host view."""
    attrs: List[str] = [
        f'srcdoc="{html.escape(document, quote=True)}"',
        f'sandbox="{SANDBOX_FLAGS}"',
        f'title="{html.escape(title)}"',
        'class="w-full h-full border-0 bg-white"',
    ]
    return f"<iframe {' '.join(attrs)}></iframe>"
